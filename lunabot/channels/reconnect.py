"""
Connection state machine with capped, jittered exponential backoff.

States:
- CONNECTED: the transport is up
- RECONNECTING(attempt, delay): waiting `delay` seconds before attempt N
- DISCONNECTED: stopped, or gave up after max_attempts
"""

import random
from dataclasses import dataclass
from enum import Enum

from loguru import logger


class ConnectionState(str, Enum):
    """Transport connection state."""
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    DISCONNECTED = "disconnected"


_TRANSITIONS: dict[ConnectionState, set[ConnectionState]] = {
    ConnectionState.DISCONNECTED: {ConnectionState.CONNECTED, ConnectionState.RECONNECTING},
    ConnectionState.CONNECTED: {ConnectionState.RECONNECTING, ConnectionState.DISCONNECTED},
    ConnectionState.RECONNECTING: {
        ConnectionState.CONNECTED,
        ConnectionState.RECONNECTING,
        ConnectionState.DISCONNECTED,
    },
}


@dataclass(frozen=True)
class ReconnectPolicy:
    """Backoff parameters."""
    initial_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 30.0
    jitter: float = 0.2  # +/- fraction applied to each delay
    max_attempts: int = 0  # 0 = unlimited

    def base_delay(self, attempt: int) -> float:
        """Un-jittered delay before the given (1-based) attempt."""
        return min(self.initial_delay * self.multiplier ** max(attempt - 1, 0), self.max_delay)

    def delay(self, attempt: int, rng: random.Random | None = None) -> float:
        """Jittered delay, never above max_delay."""
        base = self.base_delay(attempt)
        if self.jitter:
            spread = (rng or random).uniform(-self.jitter, self.jitter)
            base *= 1 + spread
        return max(0.0, min(base, self.max_delay))


class InvalidTransition(RuntimeError):
    """A state change the table does not allow."""


class ReconnectStateMachine:
    """Tracks connection state and computes the next backoff delay."""

    def __init__(self, policy: ReconnectPolicy | None = None, rng: random.Random | None = None):
        self.policy = policy or ReconnectPolicy()
        self._rng = rng or random.Random()
        self.state = ConnectionState.DISCONNECTED
        self.attempt = 0
        self.delay = 0.0

    def _move(self, new_state: ConnectionState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise InvalidTransition(f"{self.state.value} -> {new_state.value}")
        self.state = new_state

    def connected(self) -> None:
        """The connection came up; reset the backoff."""
        self._move(ConnectionState.CONNECTED)
        self.attempt = 0
        self.delay = 0.0

    def connection_lost(self) -> float | None:
        """
        The connection dropped or a connect attempt failed.

        Returns:
            Seconds to wait before the next attempt, or None when the
            attempt budget is exhausted (state becomes DISCONNECTED).
        """
        next_attempt = self.attempt + 1
        if self.policy.max_attempts and next_attempt > self.policy.max_attempts:
            logger.error(f"Giving up after {self.attempt} reconnect attempts")
            self.stop()
            return None

        self._move(ConnectionState.RECONNECTING)
        self.attempt = next_attempt
        self.delay = self.policy.delay(self.attempt, self._rng)
        return self.delay

    def stop(self) -> None:
        """Stopped on purpose or gave up."""
        if self.state is not ConnectionState.DISCONNECTED:
            self._move(ConnectionState.DISCONNECTED)
        self.attempt = 0
        self.delay = 0.0

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED
