"""
Scriptable provider doubles shared by the engine tests
"""

import asyncio
import inspect
from collections import Counter

# Never answers; the caller's deadline has to cut it off
HANG = object()

EVM_TOKEN = "0x" + "ab" * 20
EVM_WALLET = "0x" + "12" * 20
SOLANA_MINT = "So11111111111111111111111111111111111111112"


class FakeProvider:
    """
    Async provider double.

    Any public method name can be awaited as method(address, network).
    Responses are looked up per (method, network_id), then per method:
    an exception instance is raised, HANG sleeps forever, a callable is
    called with (address, network) and anything else is returned as is.
    Every call is appended to `log` as (name, method, network_id).
    """

    def __init__(self, name="fake", responses=None, defaults=None, log=None, delay=0.0):
        self.name = name
        self.responses = responses or {}
        self.defaults = defaults or {}
        self.log = log if log is not None else []
        self.delay = delay
        # Concurrent calls per method name
        self.in_flight = Counter()
        self.max_in_flight = Counter()

    def __getattr__(self, method):
        if method.startswith("_"):
            raise AttributeError(method)

        async def call(address, network, *args, **kwargs):
            self.log.append((self.name, method, network.id))
            self.in_flight[method] += 1
            self.max_in_flight[method] = max(self.max_in_flight[method], self.in_flight[method])
            try:
                if self.delay:
                    await asyncio.sleep(self.delay)
                response = self.responses.get((method, network.id), self.defaults.get(method))
                if response is HANG:
                    await asyncio.sleep(3600)
                if isinstance(response, BaseException):
                    raise response
                if callable(response):
                    response = response(address, network)
                    if inspect.isawaitable(response):
                        response = await response
                return response
            finally:
                self.in_flight[method] -= 1

        return call

    def calls(self, method=None):
        return [c for c in self.log if c[0] == self.name and (method is None or c[1] == method)]
