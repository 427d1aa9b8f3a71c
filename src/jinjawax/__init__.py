"""
jinjawax - Filesystem-driven registration for Jinja templates.

Features:
- Partials, helpers, decorators and data loaded from glob patterns
- Registration keys derived from file paths
- Compiled templates pre-seeded with shared global and local context
- Callback-style file rendering with optional compile caching
"""

from .config import WaxConfig, configure_logging, load_env_files
from .keygen import keygen_decorator, keygen_helper, keygen_partial
from .loading import DEFAULT_LOADERS, load_files
from .resolve import reducer, resolve_value
from .templating import CompiledTemplate, PartialRegistry, TemplateEngine
from .types import (
    ConfigError,
    LoadedFile,
    LoadError,
    RenderFunction,
    TemplateError,
    TemplateOptions,
    WaxError,
)
from .wax import Wax, jinja_wax

__version__ = "0.1.0"

__all__ = [
    # Main entry points
    "Wax",
    "jinja_wax",
    # Configuration
    "WaxConfig",
    "configure_logging",
    "load_env_files",
    # Engine
    "TemplateEngine",
    "CompiledTemplate",
    "PartialRegistry",
    # Key generation
    "keygen_partial",
    "keygen_helper",
    "keygen_decorator",
    # Loading
    "DEFAULT_LOADERS",
    "load_files",
    "reducer",
    "resolve_value",
    # Types
    "LoadedFile",
    "RenderFunction",
    "TemplateOptions",
    # Exceptions
    "WaxError",
    "TemplateError",
    "LoadError",
    "ConfigError",
]
