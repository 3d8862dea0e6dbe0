import binascii
import secrets
from base64 import b64decode
from typing import Callable, Optional, Tuple

from fastapi import HTTPException, Request, status
from fastapi.security.utils import get_authorization_scheme_param

from statusprobe.schemas.targets import Credentials
from statusprobe.utils.log import app_logger

# (username, password) -> allowed
CredentialCheck = Callable[[str, str], bool]

REALM = "Restricted"


def static_credential_check(credentials: Credentials) -> CredentialCheck:
    """Exact-match check against one username/password pair, in constant time."""
    expected_user = credentials.username.encode('utf-8')
    expected_pass = credentials.password.get_secret_value().encode('utf-8')

    def check(username: str, password: str) -> bool:
        user_ok = secrets.compare_digest(username.encode('utf-8'), expected_user)
        pass_ok = secrets.compare_digest(password.encode('utf-8'), expected_pass)
        return user_ok and pass_ok

    return check


def parse_basic_authorization(header: Optional[str]) -> Optional[Tuple[str, str]]:
    """Split a `Basic` Authorization header into (username, password).

    Clients differ on the charset of the user-pass: browsers and most HTTP
    libraries send UTF-8, older ones latin-1. UTF-8 is tried first.
    Returns None for a missing, non-Basic or undecodable header.
    """
    scheme, param = get_authorization_scheme_param(header)
    if not header or scheme.lower() != "basic":
        return None
    try:
        raw = b64decode(param, validate=True)
    except (binascii.Error, ValueError):
        return None
    try:
        decoded = raw.decode('utf-8')
    except UnicodeDecodeError:
        decoded = raw.decode('latin-1')
    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return username, password


def require_basic_auth(check: CredentialCheck):
    """Build a FastAPI dependency that rejects requests failing `check`."""

    def dependency(request: Request) -> str:
        supplied = parse_basic_authorization(request.headers.get("Authorization"))
        # missing, malformed and wrong credentials all get the same 401 and challenge
        if supplied is None or not check(*supplied):
            app_logger.debug("auth.rejected", username=supplied[0] if supplied else None)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unauthorized",
                headers={"WWW-Authenticate": f'Basic realm="{REALM}"'},
            )
        return supplied[0]

    return dependency
