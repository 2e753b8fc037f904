"""
Pytest configuration and shared fixtures for LunaBot tests.
"""

import asyncio
import sys
from pathlib import Path

import pytest

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from lunabot.bus.events import ChatUser
from lunabot.core.badges import parse_badges


class FakeClock:
    """Virtual monotonic clock in seconds; sleep advances it instantly."""

    def __init__(self, start: float = 100.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def ms(self) -> float:
        return self.now * 1000

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class RecordingSender:
    """Outbound sender that records (time, channel, text) and can fail on demand."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.sent: list[tuple[float, str, str]] = []
        self.fail_texts: set[str] = set()

    async def __call__(self, channel: str, text: str) -> None:
        if text in self.fail_texts:
            raise ConnectionError(f"send failed: {text}")
        self.sent.append((self.clock(), channel, text))
        await asyncio.sleep(0)

    @property
    def texts(self) -> list[str]:
        return [text for _, _, text in self.sent]

    @property
    def times(self) -> list[float]:
        return [t for t, _, _ in self.sent]


@pytest.fixture
def clock():
    """Virtual clock starting at t=100s."""
    return FakeClock()


@pytest.fixture
def sender(clock):
    """Recording sender on the virtual clock."""
    return RecordingSender(clock)


@pytest.fixture
def make_user():
    """Factory for chat users: make_user("bob", "moderator/1")."""
    def _make(login: str = "alice", badges: str = "", user_id: str | None = None) -> ChatUser:
        return ChatUser(id=user_id or f"id-{login}", login=login, badges=parse_badges(badges))
    return _make


@pytest.fixture
def config_dir(tmp_path):
    """Create a temporary config directory."""
    config = tmp_path / "config"
    config.mkdir()
    return config
