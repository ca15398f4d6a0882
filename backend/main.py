"""
Address Resolution API
Cross-chain activity detection and token/pool/wallet resolution
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os

from api.address_router import router as address_router
from api.metrics_router import router as metrics_router
from config.networks import DEFAULT_CATALOG

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)

app = FastAPI(
    title="Address Resolution API",
    description="Detects where an address is active and resolves tokens, pools and wallets to their positions",
    version="1.0.0"
)

app.include_router(address_router)
app.include_router(metrics_router)

ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if os.environ.get("PRODUCTION") else ["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)


# ============================================
# ENDPOINTS
# ============================================

@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/chains")
async def get_supported_chains():
    """Networks probed by chain detection, in priority order"""
    return {
        "chains": [
            {
                "id": n.id,
                "name": n.name,
                "family": n.family.value,
                "native_symbol": n.native_symbol,
            }
            for n in DEFAULT_CATALOG
        ]
    }


# ============================================
# RUN
# ============================================

if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
