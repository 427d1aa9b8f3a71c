"""Turn registration sources into flat name -> value mappings.

A source is one of:

- a falsy value: nothing to register
- a glob pattern, or a list of patterns: every matched file is loaded and
  folded through the reducer
- a callable: called as ``source(engine, config)``; a mapping result is
  used as-is, anything else means the callable registered things itself
- a mapping, or an object with a ``register`` callable: reduced as if it
  were the export of a single file

Each loaded export is folded into the accumulator by the first matching
row of this table:

==  =============================  ==========================================
#   export                         effect
==  =============================  ==========================================
1   falsy                          nothing
2   has a callable ``register``    ``register(engine, config)``; a mapping
                                   result is merged, anything else ignored
3   a mapping                      its keys are merged
4   anything else                  stored under ``config.keygen(config, file)``
==  =============================  ==========================================

Later files win on key collisions.
"""

from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .loading import CacheKey, load_files
from .types import FileLoader, LoadedFile, WaxError

if TYPE_CHECKING:
    from .config import WaxConfig


def has_register(value: Any) -> bool:
    return callable(getattr(value, "register", None))


def reducer(config: "WaxConfig", acc: dict[str, Any], file: LoadedFile) -> dict[str, Any]:
    value = file.exports

    if not value:
        return acc

    if has_register(value):
        result = value.register(config.engine, config)
        if isinstance(result, Mapping):
            acc.update(result)
        return acc

    if isinstance(value, Mapping):
        acc.update(value)
        return acc

    if config.keygen is None:
        raise WaxError(f"No key generator configured for {file.path}")
    acc[config.keygen(config, file)] = value
    return acc


def _is_pattern_list(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value)


def resolve_value(
    config: "WaxConfig",
    value: Any,
    loaders: Mapping[str, FileLoader] | None = None,
    cache: dict[CacheKey, Any] | None = None,
) -> dict[str, Any]:
    """
    Normalize a registration source into a mapping of name -> value.

    Args:
        config: Active configuration (keygen and reducer already selected)
        value: The registration source
        loaders: Suffix loaders used for glob sources
        cache: Loaded values by (path, loader), see loading.load_files

    Raises:
        TypeError: If the source is of an unsupported type
    """
    reduce: Callable[..., dict[str, Any]] = config.reducer or reducer

    if not value:
        return {}

    if isinstance(value, str) or _is_pattern_list(value):
        patterns: Iterable[str] = value
        acc: dict[str, Any] = {}
        for file in load_files(patterns, config, loaders, cache):
            acc = reduce(config, acc, file)
        return acc

    if callable(value) and not has_register(value):
        result = value(config.engine, config)
        if isinstance(result, Mapping):
            return dict(result)
        return {}

    if isinstance(value, Mapping) or has_register(value):
        cwd = Path(config.cwd)
        return reduce(config, {}, LoadedFile(path=cwd, base=cwd, exports=value))

    raise TypeError(f"Unsupported registration source: {type(value).__name__}")
