"""Configuration management and environment loading."""

import dataclasses
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from .keygen import keygen_decorator, keygen_helper, keygen_partial
from .types import ConfigError, Keygen, Reducer

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from .templating import TemplateEngine

DEFAULT_EXTENSIONS = (".jinja", ".j2", ".html")

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass
class WaxConfig:
    """Options recognized by a Wax instance and by each registration call."""

    # Engine handle the registrations are forwarded to
    engine: "TemplateEngine | None" = None

    # Recompile on every file render and reload modules on every scan
    bust_cache: bool = True

    # Directory relative glob patterns are resolved against
    cwd: Path = field(default_factory=Path.cwd)

    # Explicit base directory for key generation (default: glob parent)
    base: Path | str | None = None

    # Passed through to the engine's compile()
    compile_options: dict[str, Any] | None = None

    # Suffixes compiled into render functions when loaded from a glob
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS

    # Passed through to every render ("data", "helpers")
    template_options: dict[str, Any] | None = None

    # Key generators, each (config, file) -> str
    parse_partial_name: Keygen | None = keygen_partial
    parse_helper_name: Keygen | None = keygen_helper
    parse_decorator_name: Keygen | None = keygen_decorator
    parse_data_name: Keygen | None = None

    # Selected per operation
    keygen: Keygen | None = None
    reducer: Reducer | None = None

    def merge(self, overrides: Mapping[str, Any] | None = None, **kwargs: Any) -> "WaxConfig":
        """
        Return a shallow copy with overrides applied.

        Unknown option names raise TypeError.
        """
        changes = {**(overrides or {}), **kwargs}
        if "cwd" in changes and changes["cwd"] is not None:
            changes["cwd"] = Path(changes["cwd"])
        if "extensions" in changes and changes["extensions"] is not None:
            changes["extensions"] = tuple(changes["extensions"])
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_env(cls) -> "WaxConfig":
        """Create config from environment variables."""
        config = cls()

        if bust_cache := os.getenv("JINJAWAX_BUST_CACHE"):
            value = bust_cache.strip().lower()
            if value in _TRUE_VALUES:
                config.bust_cache = True
            elif value in _FALSE_VALUES:
                config.bust_cache = False
            else:
                raise ConfigError(f"Invalid JINJAWAX_BUST_CACHE: {bust_cache}")

        if cwd := os.getenv("JINJAWAX_CWD"):
            config.cwd = Path(cwd)

        if extensions := os.getenv("JINJAWAX_EXTENSIONS"):
            parsed = []
            for ext in extensions.split(","):
                ext = ext.strip()
                if not ext:
                    continue
                parsed.append(ext if ext.startswith(".") else f".{ext}")
            config.extensions = tuple(parsed)

        return config


def load_env_files(*env_files: str | Path, directory: str | Path | None = None) -> list[Path]:
    """
    Load JINJAWAX_* settings from .env files ahead of WaxConfig.from_env().

    With no files given, ".env" and then ".env.local" are looked up in
    ``directory`` (default: the current directory). Later files override
    earlier ones and the process environment. Missing files are skipped.

    Returns:
        The files that were loaded, in order
    """
    root = Path(directory) if directory is not None else Path.cwd()
    candidates = [Path(f) for f in env_files] or [root / ".env", root / ".env.local"]

    loaded: list[Path] = []
    for path in candidates:
        if not path.is_file():
            logger.debug(f"No env file at {path}")
            continue
        load_dotenv(path, override=True)
        loaded.append(path)
    return loaded


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """
    Set the level of the package logger.

    Falls back to JINJAWAX_LOG_LEVEL, then WARNING. A stderr handler is
    attached only if the package logger has none.
    """
    if level is None:
        level = os.getenv("JINJAWAX_LOG_LEVEL", "WARNING")
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ConfigError(f"Invalid log level: {level}")
        level = resolved

    pkg_logger = logging.getLogger("jinjawax")
    if not pkg_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
        pkg_logger.addHandler(handler)
    pkg_logger.setLevel(level)
    return pkg_logger
