import threading
import time
from typing import Callable, Dict, Optional

import requests

from statusprobe.clients.base_http_client import BaseHTTPClient, sanitize_error
from statusprobe.schemas.targets import FAILED_SIGNAL, StatusSignal
from statusprobe.utils.log import app_logger


class DeadlineExceeded(requests.exceptions.Timeout):
    """The whole exchange (redirects included) ran past the probe deadline."""


class ProberService:
    """HTTP status-code prober.

    - Sends exactly one GET per call. No HEAD fallback, no retries.
    - Any HTTP response counts, 4xx and 5xx included; the status code is the
      signal.
    - Network-level failures (refused, DNS, TLS, timeout, malformed response)
      all collapse into FAILED_SIGNAL (0).
    - `timeout_seconds` bounds the whole exchange up to the final response
      headers: connect, a slow status line or headers, and every redirect
      hop. The request runs on a daemon worker thread; if no response has
      arrived by the deadline the call returns 0 and the worker is left to
      finish or time out on its own.
    - The body is read and discarded until the deadline, then the response
      is closed on every path so its connection is released.
    """

    CHUNK_SIZE = 8192
    DRAIN_GRACE_SECONDS = 0.25

    def __init__(
        self,
        http_client: Optional[BaseHTTPClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.http_client = http_client or BaseHTTPClient()
        self.clock = clock

    def probe(self, url: str, timeout_seconds: float) -> StatusSignal:
        started = time.monotonic()
        deadline = self.clock() + timeout_seconds
        outcome: Dict[str, object] = {}
        responded = threading.Event()
        finished = threading.Event()

        def worker():
            try:
                with self._open(url, timeout_seconds, deadline) as resp:
                    outcome["status"] = resp.status_code
                    responded.set()
                    self._drain(resp, url, deadline)
            except BaseException as e:
                outcome.setdefault("error", e)
            finally:
                responded.set()
                finished.set()

        threading.Thread(target=worker, name=f"probe {url}", daemon=True).start()

        if not responded.wait(timeout_seconds):
            app_logger.warning("probe.deadline_exceeded", url=url, timeout_seconds=timeout_seconds)
            return FAILED_SIGNAL

        if "status" not in outcome:
            error = outcome["error"]
            if not isinstance(error, (requests.RequestException, ValueError)):
                raise error
            # ValueError covers URL/IDNA encoding problems raised below requests
            app_logger.warning(
                "probe.request_failed",
                url=url,
                exc_type=type(error).__name__,
                error=sanitize_error(error),
            )
            return FAILED_SIGNAL

        # the drain stops itself at the deadline; a read blocked past it is left behind
        remaining = started + timeout_seconds - time.monotonic()
        finished.wait(max(0.0, remaining) + self.DRAIN_GRACE_SECONDS)

        status = outcome["status"]
        if not 100 <= status <= 599:
            app_logger.warning("probe.bad_status", url=url, status_code=status)
            return FAILED_SIGNAL

        app_logger.debug("probe.result", url=url, status_code=status)
        return status

    def _open(self, url: str, timeout_seconds: float, deadline: float) -> requests.Response:
        def check_deadline(resp, *args, **kwargs):
            # runs once per response, redirect hops included
            if self.clock() >= deadline:
                resp.close()
                raise DeadlineExceeded(f"deadline passed after {timeout_seconds}s")
            return resp

        return self.http_client.open("GET", url, timeout=timeout_seconds, hooks={"response": [check_deadline]})

    def _drain(self, resp: requests.Response, url: str, deadline: float) -> None:
        # the status line already arrived; a slow or broken body does not change the signal
        try:
            for _ in resp.iter_content(chunk_size=self.CHUNK_SIZE):
                if self.clock() >= deadline:
                    app_logger.debug("probe.body_truncated", url=url)
                    return
        except requests.RequestException as e:
            app_logger.debug("probe.body_error", url=url, error=sanitize_error(e))

    def close(self) -> None:
        self.http_client.close()
