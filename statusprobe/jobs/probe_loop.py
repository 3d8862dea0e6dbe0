import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from enum import Enum
from typing import Callable, List, Optional, Tuple

from statusprobe.schemas.targets import FAILED_SIGNAL, StatusSignal, Target, TargetKey, TargetRegistry
from statusprobe.services.metrics_state import MetricsState
from statusprobe.utils.log import app_logger


ProbeFn = Callable[[str, float], StatusSignal]
# returns True when the loop was asked to stop during the wait
SleepFn = Callable[[float], bool]


class LoopState(str, Enum):
    SWEEPING = "sweeping"
    SLEEPING = "sleeping"
    STOPPED = "stopped"


class ProbeLoop:
    """Time-driven probe scheduler.

    Alternates between SWEEPING (probe every target once, write each result
    into MetricsState) and SLEEPING (wait `interval_seconds`). The next sweep
    starts `interval_seconds` after the previous one *finished*, so the real
    period is sweep duration + interval.

    `probe` and `sleep` are injected so tests can drive transitions with fakes.
    The default sleep waits on an internal event, which lets `stop()` end the
    loop at process shutdown; otherwise the loop runs forever.

    With `max_workers == 1` targets are probed serially in registry order.
    With more workers they are probed concurrently and the only ordering kept
    is that each target's write follows its own probe.
    """

    def __init__(
        self,
        registry: TargetRegistry,
        state: MetricsState,
        probe: ProbeFn,
        sleep: Optional[SleepFn] = None,
        max_workers: int = 1,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.registry = registry
        self.state = state
        self.probe = probe
        self.max_workers = max_workers
        self._stop = threading.Event()
        self.sleep = sleep or self._stop.wait
        self.current = LoopState.STOPPED
        self.sweeps = 0
        # state sequence, newest last; bounded so it cannot grow for the process lifetime
        self.transitions: List[LoopState] = []

    def _enter(self, new_state: LoopState) -> None:
        self.current = new_state
        self.transitions.append(new_state)
        if len(self.transitions) > 100:
            del self.transitions[:-100]

    def _probe_target(self, target: Target, timeout: float) -> StatusSignal:
        try:
            signal = self.probe(target.url, timeout)
        except Exception as e:
            # the prober maps network errors itself; anything reaching here is unexpected
            app_logger.exception("probe.unexpected_error", e, url=target.url, tag=target.tag)
            signal = FAILED_SIGNAL

        if signal == FAILED_SIGNAL:
            app_logger.info("probe.failed", url=target.url, tag=target.tag, status="000")
        return signal

    def _record(self, target: Target, signal: StatusSignal, written: List[Tuple[TargetKey, StatusSignal]]) -> None:
        self.state.write(target.key, signal)
        written.append((target.key, signal))

    def sweep(self) -> List[Tuple[TargetKey, StatusSignal]]:
        """Probe every target once and write the results. Returns (key, signal) in write order."""
        self._enter(LoopState.SWEEPING)
        timeout = self.registry.settings.timeout_seconds
        targets = self.registry.targets
        written: List[Tuple[TargetKey, StatusSignal]] = []
        started = time.monotonic()

        if self.max_workers == 1 or len(targets) <= 1:
            for target in targets:
                self._record(target, self._probe_target(target, timeout), written)
        else:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(targets))) as exe:
                future_to_target = {exe.submit(self._probe_target, t, timeout): t for t in targets}
                for fut in as_completed(future_to_target):
                    # _probe_target never raises
                    self._record(future_to_target[fut], fut.result(), written)

        self.sweeps += 1
        failed = sum(1 for _, signal in written if signal == FAILED_SIGNAL)
        app_logger.info(
            "sweep.finished",
            sweep=self.sweeps,
            targets=len(written),
            failed=failed,
            duration_seconds=round(time.monotonic() - started, 3),
        )
        return written

    def pause(self) -> bool:
        """Sleep for the configured interval. Returns True if a stop was requested."""
        self._enter(LoopState.SLEEPING)
        return bool(self.sleep(self.registry.settings.interval_seconds))

    def run_forever(self) -> None:
        app_logger.info(
            "loop.started",
            targets=len(self.registry.targets),
            interval_seconds=self.registry.settings.interval_seconds,
            timeout_seconds=self.registry.settings.timeout_seconds,
            max_workers=self.max_workers,
        )
        while not self._stop.is_set():
            self.sweep()
            if self.pause() or self._stop.is_set():
                break
        self._enter(LoopState.STOPPED)
        app_logger.info("loop.stopped", sweeps=self.sweeps)

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()
