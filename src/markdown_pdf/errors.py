from __future__ import annotations


class ConversionError(RuntimeError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class InvalidOptionError(ConversionError):
    """Raised when a conversion option fails validation."""

    def __init__(self, option: str, message: str) -> None:
        super().__init__("INVALID_OPTION", message)
        self.option = option


__all__ = ["ConversionError", "InvalidOptionError"]
