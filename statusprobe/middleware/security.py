from urllib.parse import urlsplit

from validators import url as validate_url
from validators.utils import ValidationError


class Security:
    """Target URL validator.

    Behavior:
    - Accepts absolute `http` and `https` URLs only.
    - Hosts may be domains, IPv4/IPv6 literals, or single-label names such as
      `localhost` or an in-cluster service name.
    - Rejects credentials embedded in the URL (`user:pass@host`); they would
      leak into the `url` metric label.
    - Uses validators.url for the format check itself.
    """

    ALLOWED_SCHEMES = ('http', 'https')

    def is_valid_target_url(self, value: str) -> bool:
        if not value or not isinstance(value, str):
            return False

        raw = value.strip()
        if not raw or raw != value:
            return False

        try:
            parts = urlsplit(raw)
        except ValueError:
            return False

        if parts.scheme.lower() not in self.ALLOWED_SCHEMES:
            return False

        if '@' in parts.netloc:
            return False

        try:
            # single-label hosts (localhost, service names) need simple_host
            return (
                validate_url(raw, strict_query=False) is True
                or validate_url(raw, simple_host=True, strict_query=False) is True
            )
        except (ValidationError, UnicodeError):
            return False
