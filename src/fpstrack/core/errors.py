"""Exception types raised by fpstrack."""


class FpstrackError(Exception):
    """Base class for all fpstrack errors."""


class LogDecodeError(FpstrackError, ValueError):
    """Raised when a log file cannot be decoded as text."""

    def __init__(self, path, reason: str = ""):
        self.path = path
        self.reason = reason
        message = f"Could not read {path} as a text log file"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
