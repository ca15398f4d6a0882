"""
Provider Call Metrics
Counts every outbound call to Moralis, DexScreener, GeckoTerminal and
CoinGecko by outcome (success/error/timeout/rate_limited), keeps rolling
response times, a bounded log of recent calls and a sliding rate window
per provider.
"""

import asyncio
import time
from collections import defaultdict, deque
from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta
from typing import Any, Deque, Dict, Optional
import logging

logger = logging.getLogger(__name__)

MAX_RECENT_CALLS = 1000
MAX_RECENT_TIMES = 100
SLOW_CALL_MS = 2000

# Published rate limits: calls per window (seconds)
PROVIDER_LIMITS = {
    'moralis': {'rate_limit': 25, 'window': 1},        # free tier, per second
    'dexscreener': {'rate_limit': 300, 'window': 60},
    'geckoterminal': {'rate_limit': 30, 'window': 60},
    'coingecko': {'rate_limit': 30, 'window': 60},
}
FALLBACK_LIMIT = {'rate_limit': 100, 'window': 60}

FAILED_STATUSES = ('error', 'timeout', 'rate_limited')


@dataclass
class APICallMetric:
    """One provider call"""
    service: str
    endpoint: str
    status: str  # 'success', 'error', 'timeout', 'rate_limited'
    response_time_ms: float
    timestamp: str
    error_message: Optional[str] = None
    status_code: Optional[int] = None


@dataclass
class ProviderStats:
    """Running counters for one provider"""
    total_calls: int = 0
    success_count: int = 0
    error_count: int = 0
    timeout_count: int = 0
    rate_limit_count: int = 0
    min_response_time_ms: float = float('inf')
    max_response_time_ms: float = 0
    last_error: Optional[str] = None
    last_error_time: Optional[str] = None
    last_success_time: Optional[str] = None
    recent_times: Deque[float] = field(default_factory=lambda: deque(maxlen=MAX_RECENT_TIMES))

    @property
    def avg_response_time_ms(self) -> float:
        return sum(self.recent_times) / len(self.recent_times) if self.recent_times else 0.0

    def count(self, status: str, error_message: Optional[str], when: str):
        self.total_calls += 1
        if status == 'success':
            self.success_count += 1
            self.last_success_time = when
            return

        if status == 'timeout':
            self.timeout_count += 1
            self.last_error = 'Timeout'
        elif status == 'rate_limited':
            self.rate_limit_count += 1
            self.last_error = 'Rate limited'
        else:
            self.error_count += 1
            self.last_error = error_message
        self.last_error_time = when


class APIMetricsTracker:
    """
    In-memory tracker shared by every provider client.

    Usage:
        with APICallTimer('dexscreener', '/token-pairs') as timer:
            response = await client.get(url)
            timer.status_code = response.status_code

        stats = api_metrics.get_all_stats()
    """

    SERVICES = PROVIDER_LIMITS

    def __init__(self):
        self._stats: Dict[str, ProviderStats] = defaultdict(ProviderStats)
        self._recent_calls: Deque[Dict[str, Any]] = deque(maxlen=MAX_RECENT_CALLS)
        self._rate_windows: Dict[str, Deque[float]] = defaultdict(deque)
        self._start_time = datetime.utcnow()

        logger.info("[APIMetrics] Tracker initialized")

    @staticmethod
    def _limit_for(service: str) -> Dict[str, int]:
        return PROVIDER_LIMITS.get(service, FALLBACK_LIMIT)

    def _trim_window(self, service: str, now: float) -> Deque[float]:
        """Drop rate-window entries older than the provider's window"""
        window = self._rate_windows[service]
        cutoff = now - self._limit_for(service)['window']
        while window and window[0] <= cutoff:
            window.popleft()
        return window

    def record_call(
        self,
        service: str,
        endpoint: str,
        status: str,
        response_time_s: float,
        error_message: str = None,
        status_code: int = None
    ):
        service = service.lower()
        response_time_ms = response_time_s * 1000
        when = datetime.utcnow().isoformat()

        self._recent_calls.append(asdict(APICallMetric(
            service=service,
            endpoint=endpoint,
            status=status,
            response_time_ms=round(response_time_ms, 2),
            timestamp=when,
            error_message=error_message,
            status_code=status_code
        )))

        stats = self._stats[service]
        stats.count(status, error_message, when)
        stats.recent_times.append(response_time_ms)
        stats.min_response_time_ms = min(stats.min_response_time_ms, response_time_ms)
        stats.max_response_time_ms = max(stats.max_response_time_ms, response_time_ms)

        now = time.monotonic()
        self._trim_window(service, now).append(now)

        if response_time_ms > SLOW_CALL_MS:
            logger.warning(f"[APIMetrics] Slow call: {service} {endpoint} took {response_time_ms:.0f}ms")

    def check_rate_limit(self, service: str) -> Dict[str, Any]:
        """Calls made inside the provider's current rate window"""
        service = service.lower()
        limit = self._limit_for(service)
        current = len(self._trim_window(service, time.monotonic()))

        return {
            'service': service,
            'limit': limit['rate_limit'],
            'window_seconds': limit['window'],
            'current_count': current,
            'remaining': max(0, limit['rate_limit'] - current),
            'percentage_used': round(current / limit['rate_limit'] * 100, 1),
            'is_limited': current >= limit['rate_limit']
        }

    def get_service_stats(self, service: str) -> Dict[str, Any]:
        stats = self._stats.get(service.lower())
        if not stats:
            return {'service': service, 'status': 'no_data'}

        return {
            'service': service,
            'total_calls': stats.total_calls,
            'success_count': stats.success_count,
            'error_count': stats.error_count,
            'timeout_count': stats.timeout_count,
            'rate_limit_count': stats.rate_limit_count,
            'success_rate': round(stats.success_count / stats.total_calls * 100, 1),
            'avg_response_ms': round(stats.avg_response_time_ms, 1),
            'min_response_ms': round(stats.min_response_time_ms, 1) if stats.recent_times else 0,
            'max_response_ms': round(stats.max_response_time_ms, 1),
            'last_error': stats.last_error,
            'last_error_time': stats.last_error_time,
            'last_success_time': stats.last_success_time,
            'rate_limit': self.check_rate_limit(service)
        }

    def get_all_stats(self) -> Dict[str, Any]:
        """Per-provider stats plus overall totals"""
        uptime = (datetime.utcnow() - self._start_time).total_seconds()

        services = {
            name: self.get_service_stats(name)
            for name in sorted(set(self._stats) | set(PROVIDER_LIMITS))
        }
        total_calls = sum(s.get('total_calls', 0) for s in services.values())
        total_errors = sum(s.get('error_count', 0) + s.get('timeout_count', 0) for s in services.values())

        return {
            'uptime_seconds': round(uptime, 0),
            'uptime_human': str(timedelta(seconds=int(uptime))),
            'started_at': self._start_time.isoformat(),
            'total_api_calls': total_calls,
            'total_errors': total_errors,
            'overall_success_rate': round((total_calls - total_errors) / total_calls * 100, 1) if total_calls else 100,
            'services': services
        }

    def get_recent_errors(self, limit: int = 20) -> list:
        """Newest failed calls first"""
        errors = [c for c in reversed(self._recent_calls) if c['status'] in FAILED_STATUSES]
        return errors[:limit]

    def reset(self):
        self._stats.clear()
        self._recent_calls.clear()
        self._rate_windows.clear()
        self._start_time = datetime.utcnow()


# Global instance
api_metrics = APIMetricsTracker()


class APICallTimer:
    """
    Times one provider call and records it on exit. An exception marks the
    call as failed (cancellation counts as a timeout) and is re-raised.
    """

    def __init__(self, service: str, endpoint: str = '', tracker: APIMetricsTracker = None):
        self.service = service
        self.endpoint = endpoint
        self.tracker = tracker or api_metrics
        self.start = None
        self.status = 'success'
        self.error_message = None
        self.status_code = None

    def __enter__(self):
        self.start = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start
        if exc_type is not None:
            if exc_type is asyncio.CancelledError:
                self.status = 'timeout'
            elif self.status == 'success':
                self.status = 'error'
            if self.error_message is None:
                self.error_message = (str(exc_val) or exc_type.__name__)[:200]
        self.tracker.record_call(
            service=self.service,
            endpoint=self.endpoint,
            status=self.status,
            response_time_s=duration,
            error_message=self.error_message,
            status_code=self.status_code
        )
        return False
