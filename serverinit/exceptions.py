"""
serverinit unified exception hierarchy

Layered exceptions carrying an error code, context information and a
dict form for structured reporting.
"""

from typing import Any, Dict, Optional


class ServerInitError(Exception):
    """Base class for all serverinit errors"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}

    def _get_default_code(self) -> str:
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """Convert the exception into a dict"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigError(ServerInitError):
    """Configuration errors"""

    def _get_default_code(self) -> str:
        return "E100"


class ConfigParseError(ConfigError):
    """Config file could not be parsed"""

    def _get_default_code(self) -> str:
        return "E101"


class ConfigValidationError(ConfigError):
    """Config values are invalid"""

    def _get_default_code(self) -> str:
        return "E102"


class TransferError(ServerInitError):
    """Download failed (network, DNS, HTTP status, timeout)"""

    def _get_default_code(self) -> str:
        return "E200"


class VerificationError(ServerInitError):
    """Integrity verification errors"""

    def _get_default_code(self) -> str:
        return "E300"


class DigestMismatchError(VerificationError):
    """Computed digest differs from the pinned one"""

    def __init__(
        self,
        message: str,
        expected: str,
        actual: Optional[str],
        algorithm: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        context = dict(context or {})
        context.update({"expected": expected, "actual": actual, "algorithm": algorithm})
        super().__init__(message, context=context)
        self.expected = expected
        self.actual = actual
        self.algorithm = algorithm

    def _get_default_code(self) -> str:
        return "E301"


class FilesystemError(ServerInitError):
    """Local file write/delete/move failed"""

    def _get_default_code(self) -> str:
        return "E350"


class StepError(ServerInitError):
    """A provisioning step failed"""

    def _get_default_code(self) -> str:
        return "E400"


class CommandError(StepError):
    """An external command exited non-zero or could not be started"""

    def _get_default_code(self) -> str:
        return "E401"


__all__ = [
    "ServerInitError",
    # config
    "ConfigError",
    "ConfigParseError",
    "ConfigValidationError",
    # download
    "TransferError",
    # verification
    "VerificationError",
    "DigestMismatchError",
    # local io
    "FilesystemError",
    # steps
    "StepError",
    "CommandError",
]
