"""
Engine Settings
Environment-driven configuration for provider endpoints, timeouts and limits.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    moralis_api_key: Optional[str] = None

    # Deadlines (seconds)
    detection_deadline: float = 20.0
    probe_timeout: float = 12.0
    http_timeout: float = 10.0

    # Shared outbound limiter
    max_concurrent_requests: int = 8

    # Provider base URLs
    moralis_evm_url: str = "https://deep-index.moralis.io/api/v2.2"
    moralis_solana_url: str = "https://solana-gateway.moralis.io"
    dexscreener_url: str = "https://api.dexscreener.com"
    geckoterminal_url: str = "https://api.geckoterminal.com/api/v2"
    coingecko_url: str = "https://api.coingecko.com/api/v3"


def load_settings() -> Settings:
    """Build settings from the current environment"""
    defaults = Settings()
    return Settings(
        moralis_api_key=(os.getenv("MORALIS_API_KEY") or "").strip() or None,
        detection_deadline=_env_float("DETECTION_DEADLINE_SECONDS", defaults.detection_deadline),
        probe_timeout=_env_float("PROBE_TIMEOUT_SECONDS", defaults.probe_timeout),
        http_timeout=_env_float("HTTP_TIMEOUT_SECONDS", defaults.http_timeout),
        max_concurrent_requests=max(1, _env_int("MAX_CONCURRENT_REQUESTS", defaults.max_concurrent_requests)),
        moralis_evm_url=os.getenv("MORALIS_EVM_API_URL", defaults.moralis_evm_url),
        moralis_solana_url=os.getenv("MORALIS_SOLANA_API_URL", defaults.moralis_solana_url),
        dexscreener_url=os.getenv("DEXSCREENER_API_URL", defaults.dexscreener_url),
        geckoterminal_url=os.getenv("GECKOTERMINAL_API_URL", defaults.geckoterminal_url),
        coingecko_url=os.getenv("COINGECKO_API_URL", defaults.coingecko_url),
    )


settings = load_settings()
