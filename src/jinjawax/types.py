"""Shared types and exceptions for jinjawax."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, TypedDict

if TYPE_CHECKING:
    from .config import WaxConfig


@dataclass
class LoadedFile:
    """A file matched by a glob scan, together with its loaded value."""

    # Resolved path of the matched file
    path: Path
    # Directory the glob was rooted at; keys are derived relative to it
    base: Path
    # Value produced by the suffix loader (template, module export, JSON, ...)
    exports: Any = None


class TemplateOptions(TypedDict, total=False):
    """Per-render options passed to a compiled template."""

    data: dict[str, Any]
    helpers: dict[str, Callable[..., Any]]


class RenderFunction(Protocol):
    """A callable that renders a compiled template against supplied data."""

    def __call__(
        self,
        data: Mapping[str, Any] | None = None,
        options: TemplateOptions | None = None,
    ) -> str: ...


Keygen = Callable[["WaxConfig", LoadedFile], str]
FileLoader = Callable[[Path], Any]
Reducer = Callable[["WaxConfig", dict[str, Any], LoadedFile], dict[str, Any]]
RenderCallback = Callable[..., None]


# Exceptions
class WaxError(Exception):
    """Base exception for jinjawax errors."""

    pass


class TemplateError(WaxError):
    """Template compilation or rendering error."""

    pass


class LoadError(WaxError):
    """A matched file could not be loaded."""

    def __init__(self, message: str, path: Path | str | None = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class ConfigError(WaxError):
    """Configuration error."""

    pass
