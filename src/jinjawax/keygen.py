"""Registration key generators.

Keys are derived from a loaded file's path relative to the base directory
of the glob that matched it:

- 'partials/layouts/main page.jinja' -> 'layouts/main-page' (partial)
- 'helpers/string/upper case.py'     -> 'string-upper-case' (helper, decorator)
"""

import os
import re
from typing import TYPE_CHECKING

from .types import LoadedFile

if TYPE_CHECKING:
    from .config import WaxConfig

NON_WORD_CHARACTERS = re.compile(r"\W+")
PATH_SEPARATORS = re.compile(r"[\\/]")
WHITESPACE_CHARACTERS = re.compile(r"\s+")
WORD_SEPARATOR = "-"


def _normalize_separators(path: str) -> str:
    return PATH_SEPARATORS.sub(lambda _: os.sep, path)


def relative_name(file: LoadedFile) -> str:
    """
    Return the file's path relative to its base, without extension.

    Both paths are resolved first. When the resolved file does not live
    under the resolved base (e.g. a symlink pointing out of the tree), the
    full path is returned.
    """
    full_path = _normalize_separators(os.path.realpath(file.path))
    base_path = _normalize_separators(os.path.realpath(file.base)) + os.sep

    prefix = re.compile("^" + re.escape(base_path), re.IGNORECASE)
    short_path = prefix.sub("", full_path, count=1)

    extension = os.path.splitext(short_path)[1]
    if extension:
        short_path = short_path[: -len(extension)]
    return short_path


def keygen_partial(config: "WaxConfig | None", file: LoadedFile) -> str:
    """Partial name: relative path with whitespace collapsed, separators kept."""
    return WHITESPACE_CHARACTERS.sub(WORD_SEPARATOR, relative_name(file))


def keygen_helper(config: "WaxConfig | None", file: LoadedFile) -> str:
    """Helper name: partial name with every run of non-word characters collapsed."""
    return NON_WORD_CHARACTERS.sub(WORD_SEPARATOR, keygen_partial(config, file))


def keygen_decorator(config: "WaxConfig | None", file: LoadedFile) -> str:
    return keygen_helper(config, file)
