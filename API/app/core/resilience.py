import time
from dataclasses import dataclass, field
from enum import Enum
from threading import Lock

from app.core.settings import settings


class CircuitOpenError(RuntimeError):
    """Raised instead of calling a dependency whose breaker is open. Calls are never retried."""


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    name: str
    failure_threshold: int = 4
    recovery_timeout_seconds: float = 30.0
    half_open_max_calls: int = 1
    state: CircuitState = field(default=CircuitState.CLOSED)
    failure_count: int = field(default=0)
    last_failure_time: float = field(default=0.0)
    half_open_calls: int = field(default=0)
    _lock: Lock = field(default_factory=Lock)

    def can_execute(self) -> bool:
        with self._lock:
            if self.state == CircuitState.CLOSED:
                return True
            if self.state == CircuitState.OPEN:
                if time.monotonic() - self.last_failure_time >= self.recovery_timeout_seconds:
                    self.state = CircuitState.HALF_OPEN
                    self.half_open_calls = 1
                    return True
                return False
            if self.half_open_calls < self.half_open_max_calls:
                self.half_open_calls += 1
                return True
            return False

    def record_success(self) -> None:
        with self._lock:
            self.state = CircuitState.CLOSED
            self.failure_count = 0
            self.half_open_calls = 0

    def record_failure(self) -> None:
        with self._lock:
            self.failure_count += 1
            self.last_failure_time = time.monotonic()
            if self.state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
                self.state = CircuitState.OPEN
                self.half_open_calls = 0

    async def call(self, async_func):
        """Run ``async_func`` once under the breaker."""
        if not self.can_execute():
            raise CircuitOpenError(f"circuit '{self.name}' is open")
        try:
            result = await async_func()
        except Exception:
            self.record_failure()
            raise
        self.record_success()
        return result

    def status(self) -> dict:
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
        }


_registry: dict[str, CircuitBreaker] = {}
_registry_lock = Lock()


def get_breaker(name: str) -> CircuitBreaker:
    with _registry_lock:
        if name not in _registry:
            _registry[name] = CircuitBreaker(
                name=name,
                failure_threshold=settings.breaker_failure_threshold,
                recovery_timeout_seconds=settings.breaker_recovery_seconds,
            )
        return _registry[name]


def get_breakers_status() -> dict[str, dict]:
    with _registry_lock:
        breakers = list(_registry.items())
    return {name: breaker.status() for name, breaker in breakers}


def reset_breakers() -> None:
    """Forget all breakers (e.g. for tests)."""
    with _registry_lock:
        _registry.clear()
