"""Markdown to PDF conversion with GitHub styling and headless Chromium."""

from .config import AppConfig, load_config
from .core import ConversionService
from .errors import ConversionError, InvalidOptionError
from .models import ConversionRequest, ConversionResult, Margins

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "ConversionError",
    "ConversionRequest",
    "ConversionResult",
    "ConversionService",
    "InvalidOptionError",
    "Margins",
    "load_config",
]
