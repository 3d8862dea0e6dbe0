# clients/base_http_client.py
import re
from typing import Callable, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter

from statusprobe.config.settings import settings


def sanitize_error(exc: BaseException) -> str:
    """Render an exception for logging without memory addresses like <HTTPConnection(...) at 0x...>."""
    return re.sub(r'0x[0-9a-fA-F]+', '<ptr>', str(exc))


class BaseHTTPClient:
    """Pooled HTTP client used by the prober.

    Wraps one `requests.Session` so connections are reused across sweeps. The
    client never retries: a probe is a single attempt and the prober decides
    what a failure means.
    """

    # same cap as a stock Go or curl client
    MAX_REDIRECTS = 10

    def __init__(self,
                 user_agent: Optional[str] = None,
                 pool_maxsize: int = 10,
                 accept: Optional[str] = '*/*',
                 ):
        self.user_agent = user_agent or settings.USER_AGENT
        self.accept = accept
        self.session = requests.Session()
        self.session.max_redirects = self.MAX_REDIRECTS

        adapter = HTTPAdapter(pool_connections=pool_maxsize, pool_maxsize=pool_maxsize, max_retries=0)
        self.session.mount('http://', adapter)
        self.session.mount('https://', adapter)

        # setup default headers
        self._setup_default_headers()

    def _setup_default_headers(self):
        """setup default headers for the client"""
        self.session.headers.update({
            'User-Agent': self.user_agent,
            'Accept': self.accept,
        })

    def open(self, method: str, url: str, timeout: float, hooks: Optional[Dict[str, List[Callable]]] = None) -> requests.Response:
        """Send one request and return the response with its body still unread.

        `timeout` applies to the connect and to each socket read, not to the
        whole exchange; callers needing a wall-clock bound enforce it themselves.
        The caller owns the response and must close it (use it as a context
        manager) so the connection goes back to the pool.
        """
        return self.session.request(
            method=method,
            url=url,
            timeout=(timeout, timeout),
            allow_redirects=True,
            stream=True,
            hooks=hooks,
        )

    def close(self):
        """close HTTP session"""
        self.session.close()
