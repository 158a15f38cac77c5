"""
Pytest configuration and fixtures
"""
import asyncio
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# Keep test runs independent of a developer's .env
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("RETRY_FAILED_SOURCES", "false")
os.environ.setdefault("SANDBOX_ALLOWED_MODULES", "math,json")

from wormhole.components.contracts import FetchRequest, FetchResponse

FIXTURES_DIR = Path(__file__).parent / "fixtures"

SCENARIO_SOURCE = "exports.default = lambda: 1"


class FakeFetcher:
    """
    Async fetcher returning canned payloads per uri.

    When ``gate`` is set, every fetch stays in flight until the event is set.
    """

    def __init__(
        self,
        payloads: Optional[Dict[str, object]] = None,
        default: object = SCENARIO_SOURCE,
        error: Optional[BaseException] = None,
        headers: Optional[Dict[str, str]] = None,
        gate: Optional[asyncio.Event] = None,
    ):
        self.payloads = payloads or {}
        self.default = default
        self.error = error
        self.headers = headers or {}
        self.gate = gate
        self.calls: List[FetchRequest] = []

    @property
    def urls(self) -> List[str]:
        return [request.url for request in self.calls]

    async def __call__(self, request: FetchRequest) -> FetchResponse:
        self.calls.append(request)
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return FetchResponse(
            data=self.payloads.get(request.url, self.default),
            headers=self.headers,
            url=request.url,
        )


async def always_verify(response: FetchResponse) -> bool:
    return True


@pytest.fixture
def fake_fetcher():
    """Fetcher serving the scenario source for any uri"""
    return FakeFetcher()


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR
