"""Test doubles and builders shared across test modules."""

from __future__ import annotations

import threading

from statusprobe.schemas.targets import TargetRegistry


class FakeProber:
    """Returns canned signals per URL and records every call in order."""

    def __init__(self, results: dict[str, int] | None = None, default: int = 200) -> None:
        self.results = results or {}
        self.default = default
        self.calls: list[tuple[str, float]] = []
        self._lock = threading.Lock()

    def __call__(self, url: str, timeout: float) -> int:
        with self._lock:
            self.calls.append((url, timeout))
        result = self.results.get(url, self.default)
        if isinstance(result, BaseException):
            raise result
        return result


class FakeSleep:
    """Records requested sleeps; asks the loop to stop after `stop_after` calls."""

    def __init__(self, stop_after: int = 1) -> None:
        self.stop_after = stop_after
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> bool:
        self.calls.append(seconds)
        return len(self.calls) >= self.stop_after


def make_registry(urls: list[tuple[str, str]], interval: int = 30, timeout: int = 5) -> TargetRegistry:
    return TargetRegistry.model_validate({
        "urls": [{"url": url, "tag": tag} for url, tag in urls],
        "settings": {"interval_seconds": interval, "timeout_seconds": timeout},
    })


