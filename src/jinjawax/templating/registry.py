"""Partial registry backing the engine's template loader."""

from jinja2 import Template

from ..types import TemplateError


class PartialRegistry:
    """
    Registry of named partial templates.

    Supports:
    - Nested partial names (e.g., 'layouts/main')
    - Listing by prefix
    """

    def __init__(self) -> None:
        self._templates: dict[str, Template] = {}
        self._sources: dict[str, str] = {}  # name -> original source

    def register(self, name: str, template: Template, source: str = "") -> None:
        """
        Register a compiled partial by name.

        Re-registering a name replaces the previous partial.

        Args:
            name: Partial name (slashes allowed for nesting)
            template: Compiled Jinja Template
            source: Original template source, if known
        """
        self._templates[name] = template
        self._sources[name] = source

    def unregister(self, name: str) -> None:
        """Remove a partial. Missing names are ignored."""
        self._templates.pop(name, None)
        self._sources.pop(name, None)

    def get(self, name: str) -> Template:
        """
        Get a partial by name.

        Raises:
            TemplateError: If the partial is not registered
        """
        if name not in self._templates:
            raise TemplateError(f"Partial not found: {name}")
        return self._templates[name]

    def has(self, name: str) -> bool:
        """Check if a partial exists."""
        return name in self._templates

    def list_partials(self, prefix: str | None = None) -> list[str]:
        """
        List registered partial names.

        Args:
            prefix: Optional prefix to filter by (e.g., 'layouts/')

        Returns:
            Sorted list of partial names
        """
        names = list(self._templates.keys())
        if prefix:
            names = [n for n in names if n.startswith(prefix)]
        return sorted(names)

    def get_source(self, name: str) -> str:
        """Get the original source of a partial."""
        if name not in self._sources:
            raise TemplateError(f"Partial not found: {name}")
        return self._sources[name]

    def clear(self) -> None:
        """Remove all registered partials."""
        self._templates.clear()
        self._sources.clear()

    def __len__(self) -> int:
        return len(self._templates)
