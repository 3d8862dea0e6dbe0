import json
from pathlib import Path
from typing import Any, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from statusprobe.core.exceptions.exceptions import ConfigurationError
from statusprobe.schemas.targets import Credentials, TargetRegistry
from statusprobe.utils.log import app_logger

_Model = TypeVar('_Model', bound=BaseModel)


def _read_json(path: str) -> Any:
    try:
        raw = Path(path).read_text(encoding='utf-8')
    except OSError as e:
        raise ConfigurationError(path, f"cannot read file ({e.strerror or e})")

    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(path, f"malformed JSON at line {e.lineno} column {e.colno}: {e.msg}")


def _validate(model: Type[_Model], path: str, data: Any) -> _Model:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        # keep only location and message; input values may hold secrets
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(path, problems)


def load_targets(path: str) -> TargetRegistry:
    """Load the target list and probe timing from a JSON file.

    Any problem (missing file, bad JSON, a bad URL, a non-positive interval
    or timeout) raises ConfigurationError; there is no partial load.
    """
    registry = _validate(TargetRegistry, path, _read_json(path))
    app_logger.info(
        "config.targets_loaded",
        path=path,
        targets=len(registry.targets),
        interval_seconds=registry.settings.interval_seconds,
        timeout_seconds=registry.settings.timeout_seconds,
    )
    return registry


def load_credentials(path: str) -> Credentials:
    credentials = _validate(Credentials, path, _read_json(path))
    app_logger.info("config.credentials_loaded", path=path, username=credentials.username)
    return credentials


def parse_listen_addr(addr: str) -> Tuple[str, int]:
    """Split `host:port` into its parts; an empty host means every interface.

    `[::1]:9119` style IPv6 literals are accepted.
    """
    if not addr or ':' not in addr:
        raise ConfigurationError('listen address', f"expected host:port, got {addr!r}")

    host, _, port_s = addr.rpartition(':')
    if host.startswith('[') and host.endswith(']'):
        host = host[1:-1]

    try:
        port = int(port_s)
    except ValueError:
        raise ConfigurationError('listen address', f"invalid port in {addr!r}")
    if not 0 < port < 65536:
        raise ConfigurationError('listen address', f"port out of range in {addr!r}")

    return host or '0.0.0.0', port
