class AppError(Exception):
    """Base class for all application-level errors."""
    pass


class ConfigurationError(AppError):
    """Startup configuration is missing, unreadable or invalid."""

    def __init__(self, source: str, detail: str = ""):
        self.source = source
        self.detail = detail
        self.message = f"Invalid configuration in '{source}': {detail}" if detail else f"Invalid configuration in '{source}'"
        super().__init__(self.message)


class InfrastructureError(AppError):
    """Base for infrastructure-related errors (network, listener, etc)."""
    pass


class ListenError(InfrastructureError):
    def __init__(self, addr: str, detail: str = ""):
        self.addr = addr
        self.message = f"Could not serve on '{addr}': {detail}"
        super().__init__(self.message)
