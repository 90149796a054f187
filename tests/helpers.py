"""
Test doubles shared across the suite.

Network access is never used: fetches go through FakeTransport, whose
responses are released by the test through asyncio futures.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class FakeCall:
    endpoint: str
    auth_key: str | None
    token: object
    future: asyncio.Future = field(repr=False)

    def succeed(self, payload):
        self.future.set_result(payload)

    def fail(self, error):
        self.future.set_exception(error)


class FakeTransport:
    """Transport whose requests stay pending until the test resolves them."""

    def __init__(self):
        self.calls: list[FakeCall] = []

    async def get_json(self, endpoint, auth_key, token):
        fut = asyncio.get_running_loop().create_future()
        self.calls.append(FakeCall(endpoint, auth_key, token, fut))
        return await fut

    @property
    def last(self) -> FakeCall:
        return self.calls[-1]


class StaticTransport:
    """Transport answering every endpoint from a fixed table."""

    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    async def get_json(self, endpoint, auth_key, token):
        self.calls.append((endpoint, auth_key))
        result = self.responses[endpoint]
        if isinstance(result, Exception):
            raise result
        return result


async def settle():
    """Let pending completions run."""
    for _ in range(5):
        await asyncio.sleep(0)


FIXED_NOW = datetime(2025, 1, 2, 9, 30, tzinfo=timezone.utc)
