"""
pytest configuration for gateway tests.

Adds src directory to Python path for imports and provides a controllable
clock so timing behavior is tested without sleeping.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))


class FakeClock:
    """
    Clock whose time only moves when sleep() or advance() is called.

    Every sleep is recorded so tests can assert on the exact delays taken.
    """

    def __init__(self, start: float = 1_700_000_000.0):
        self.current = start
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self.current

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def _isolate_gateway_env(monkeypatch):
    """Keep real ZOHO_* settings from leaking into config tests."""
    from config.config import ENV_OVERRIDES

    for env_name in ENV_OVERRIDES:
        monkeypatch.delenv(env_name, raising=False)
