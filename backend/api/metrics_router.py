"""
Metrics API Router - Exposes outbound provider call metrics

Endpoints:
- GET /api/metrics - All provider stats
- GET /api/metrics/service/{service} - Service-specific stats
- GET /api/metrics/errors - Recent failed calls
"""

from fastapi import APIRouter, HTTPException
from infrastructure.api_metrics import api_metrics

router = APIRouter(prefix="/api/metrics", tags=["metrics"])


@router.get("")
async def get_all_metrics():
    """
    Metrics for every tracked provider

    Returns:
    - Uptime info
    - Per-service stats (success rate, response times, rate limits)
    - Total call counts
    """
    return api_metrics.get_all_stats()


@router.get("/service/{service}")
async def get_service_metrics(service: str):
    """
    Detailed metrics for one provider

    Services: moralis, dexscreener, geckoterminal, coingecko
    """
    stats = api_metrics.get_service_stats(service)
    if stats.get('status') == 'no_data':
        raise HTTPException(status_code=404, detail=f"No data for service: {service}")
    return stats


@router.get("/errors")
async def get_recent_errors(limit: int = 20):
    errors = api_metrics.get_recent_errors(limit)
    return {
        'count': len(errors),
        'errors': errors
    }
