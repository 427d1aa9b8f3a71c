"""Glob scanning and per-suffix file loading."""

import importlib.util
import json
import logging
import os
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Any

from wcmatch import glob

from .types import FileLoader, LoadedFile, LoadError, WaxError

if TYPE_CHECKING:
    from .config import WaxConfig

logger = logging.getLogger(__name__)

GLOB_MAGIC = re.compile(r"[*?[{]")
NEGATION_PREFIX = "!"
GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE | glob.NEGATE | glob.NODIR

# Names typing-related imports leave behind that carry no __module__ of their own
IMPORT_ARTIFACTS = frozenset({"annotations", "TYPE_CHECKING"})

CacheKey = tuple[Path, FileLoader]


def glob_parent(pattern: str) -> str:
    """
    Return the leading directory of a pattern that contains no glob magic.

    'templates/**/*.jinja' -> 'templates'
    'templates/layout.jinja' -> 'templates'
    'templates/*.{jinja,html}' -> 'templates'
    """
    parts = re.split(r"[\\/]", pattern)
    static: list[str] = []
    for part in parts[:-1]:
        if GLOB_MAGIC.search(part):
            break
        static.append(part)
    if not static:
        return "."
    if static == [""]:
        return os.sep
    return os.sep.join(static)


def load_module(path: Path) -> Any:
    """Import a Python file as an anonymous module and return its export."""
    name = "_jinjawax_" + re.sub(r"\W", "_", path.stem)
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise LoadError(f"Cannot import {path}", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module_exports(module)


def module_exports(module: ModuleType) -> Any:
    """
    Determine what a loaded module exports.

    - the module's ``exports`` attribute, when defined
    - the module itself, when it defines a callable ``register``
    - otherwise a mapping of its public names (``__all__`` if present)

    Without ``__all__``, anything that reports another module as its
    ``__module__`` counts as an import and is left out, including instances
    of classes defined elsewhere. List such constants in ``__all__`` to
    export them.
    """
    if hasattr(module, "exports"):
        return module.exports
    if callable(getattr(module, "register", None)):
        return module

    names = getattr(module, "__all__", None)
    if names is not None:
        return {name: getattr(module, name) for name in names}

    exported: dict[str, Any] = {}
    for name, value in vars(module).items():
        if name.startswith("_") or name in IMPORT_ARTIFACTS:
            continue
        if isinstance(value, ModuleType):
            continue
        owner = getattr(value, "__module__", None)
        if owner not in (None, module.__name__):
            continue
        exported[name] = value
    return exported


def load_json(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


DEFAULT_LOADERS: dict[str, FileLoader] = {
    ".py": load_module,
    ".json": load_json,
}


def _base_for(pattern: str, config: "WaxConfig") -> Path:
    cwd = Path(config.cwd)
    if config.base is not None:
        return cwd / config.base
    return cwd / glob_parent(pattern)


def scan(patterns: str | Iterable[str], config: "WaxConfig") -> list[tuple[Path, Path]]:
    """
    Match patterns to files.

    Supports globstar ('**'), brace expansion ('*.{jinja,html}') and
    exclusion patterns starting with '!', which apply to every other
    pattern in the list. Results are de-duplicated and sorted by path.

    Returns:
        List of (path, base) pairs
    """
    if isinstance(patterns, str):
        patterns = [patterns]
    patterns = list(patterns)

    cwd = Path(config.cwd)
    exclusions = [p for p in patterns if p.startswith(NEGATION_PREFIX)]
    matches: dict[Path, Path] = {}

    for pattern in patterns:
        if pattern.startswith(NEGATION_PREFIX):
            continue
        base = _base_for(pattern, config)
        # Each pattern keeps its own base, so match them one at a time
        for match in glob.glob([pattern, *exclusions], flags=GLOB_FLAGS, root_dir=str(cwd)):
            matches.setdefault(cwd / match, base)

    return sorted(matches.items(), key=lambda item: str(item[0]))


def load_files(
    patterns: str | Iterable[str],
    config: "WaxConfig",
    loaders: Mapping[str, FileLoader] | None = None,
    cache: dict[CacheKey, Any] | None = None,
) -> list[LoadedFile]:
    """
    Scan patterns and load every matched file with the loader for its suffix.

    Args:
        patterns: Glob pattern or list of patterns (relative to config.cwd)
        config: Active configuration
        loaders: Mapping of suffix -> loader(path); DEFAULT_LOADERS if omitted
        cache: Loaded values by (path, loader), reused instead of reloading
            when given. Loaders that compare equal share entries.

    Raises:
        LoadError: If a loader fails
    """
    loaders = DEFAULT_LOADERS if loaders is None else loaders
    results: list[LoadedFile] = []

    for path, base in scan(patterns, config):
        loader = loaders.get(path.suffix)
        if loader is None:
            logger.debug(f"Skipping {path}: no loader for {path.suffix!r}")
            continue

        key = (path, loader)
        if cache is not None and key in cache:
            logger.debug(f"Module cache hit for {path}")
            exports = cache[key]
        else:
            try:
                exports = loader(path)
            except WaxError:
                raise
            except Exception as e:
                raise LoadError(f"Failed to load {path}: {e}", path) from e
            logger.debug(f"Loaded {path}")
            if cache is not None:
                cache[key] = exports

        results.append(LoadedFile(path=path, base=base, exports=exports))

    return results
