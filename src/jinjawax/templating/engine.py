"""Jinja engine handle used by Wax."""

import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from jinja2 import (
    BaseLoader,
    Environment,
    StrictUndefined,
    Template,
    TemplateNotFound,
    Undefined,
    UndefinedError,
    meta,
)
from jinja2 import TemplateError as JinjaTemplateError

from ..types import TemplateError, TemplateOptions
from .registry import PartialRegistry

logger = logging.getLogger(__name__)

# Render variable exposing the per-render data frame ({{ _data.global.foo }})
DATA_VARIABLE = "_data"


class RegistryLoader(BaseLoader):
    """Jinja loader that serves partials from a PartialRegistry."""

    def __init__(self, registry: PartialRegistry):
        self.registry = registry

    def get_source(
        self, environment: Environment, template: str
    ) -> tuple[str, str | None, Any]:
        if not self.registry.has(template):
            raise TemplateNotFound(template)
        source = self.registry.get_source(template)
        return source, template, lambda: True

    def load(
        self,
        environment: Environment,
        name: str,
        globals: Any = None,
    ) -> Template:
        # Partials are stored compiled; hand them out as-is
        if not self.registry.has(name):
            raise TemplateNotFound(name)
        return self.registry.get(name)


class CompiledTemplate:
    """
    A compiled template callable as ``template(data, options)``.

    ``data`` becomes the top-level template variables. ``options["data"]``
    is exposed as ``_data`` and ``options["helpers"]`` as extra callables
    for this render only.
    """

    def __init__(self, template: Template, source: str = ""):
        self.template = template
        self.source = source

    def __call__(
        self,
        data: Mapping[str, Any] | None = None,
        options: TemplateOptions | None = None,
    ) -> str:
        options = options or {}
        variables: dict[str, Any] = dict(options.get("helpers") or {})
        variables.update(data or {})
        variables[DATA_VARIABLE] = options.get("data") or {}

        try:
            return self.template.render(variables)
        except UndefinedError as e:
            raise TemplateError(f"Missing template variable: {e}") from e
        except TemplateError:
            raise
        except Exception as e:
            raise TemplateError(f"Template rendering failed: {e}") from e

    def __repr__(self) -> str:
        name = self.template.name or "<string>"
        return f"CompiledTemplate({name!r})"


class TemplateEngine:
    """
    Engine handle wrapping a Jinja environment.

    Exposes the capability set Wax forwards to:
    - compile(source, options) -> CompiledTemplate
    - register_partial(mapping): templates reachable via {% include %}
    - register_helper(mapping): callables available as template globals
    - register_decorator(mapping): callables available as filters
    """

    def __init__(
        self,
        strict: bool = False,
        environment: Environment | None = None,
    ):
        """
        Initialize the engine.

        Args:
            strict: If True, raise error on undefined variables
            environment: Existing environment to adopt; its loader is replaced
        """
        self.registry = PartialRegistry()

        if environment is None:
            environment = Environment(
                undefined=StrictUndefined if strict else Undefined,
                autoescape=False,
                trim_blocks=True,
                lstrip_blocks=True,
                # Partials can be replaced at any time
                cache_size=0,
            )
        environment.loader = RegistryLoader(self.registry)
        self.env = environment

    def compile(
        self, source: str, options: Mapping[str, Any] | None = None
    ) -> CompiledTemplate:
        """
        Compile a template source string.

        Args:
            source: Template source
            options: Jinja environment options applied via Environment.overlay
                (e.g. autoescape, trim_blocks)

        Raises:
            TemplateError: If the source cannot be compiled
        """
        env = self.env.overlay(**options) if options else self.env
        try:
            template = env.from_string(source)
        except JinjaTemplateError as e:
            raise TemplateError(f"Template compilation failed: {e}") from e
        return CompiledTemplate(template, source)

    def register_partial(self, name: str | Mapping[str, Any], partial: Any = None) -> None:
        """
        Register partials by name.

        Accepts a single ``(name, partial)`` pair or a mapping. A partial may
        be a source string, a CompiledTemplate or a Jinja Template.
        """
        for key, value in _items(name, partial):
            if isinstance(value, CompiledTemplate):
                template, source = value.template, value.source
            elif isinstance(value, Template):
                template, source = value, ""
            elif isinstance(value, str):
                template, source = self.compile(value).template, value
            else:
                raise TemplateError(
                    f"Unsupported partial for {key!r}: {type(value).__name__}"
                )
            self.registry.register(key, template, source)
            logger.debug(f"Registered partial {key!r}")

    def register_helper(self, name: str | Mapping[str, Any], helper: Any = None) -> None:
        """Register helpers (template globals) by name."""
        for key, value in _items(name, helper):
            self.env.globals[key] = value
            logger.debug(f"Registered helper {key!r}")

    def register_decorator(
        self, name: str | Mapping[str, Any], decorator: Any = None
    ) -> None:
        """Register decorators (template filters) by name."""
        for key, value in _items(name, decorator):
            if not callable(value):
                raise TemplateError(f"Decorator {key!r} is not callable")
            self.env.filters[key] = value
            logger.debug(f"Registered decorator {key!r}")

    def unregister_partial(self, name: str) -> None:
        self.registry.unregister(name)

    def unregister_helper(self, name: str) -> None:
        self.env.globals.pop(name, None)

    def unregister_decorator(self, name: str) -> None:
        self.env.filters.pop(name, None)

    @property
    def partials(self) -> Mapping[str, Template]:
        """Read-only view of registered partials."""
        return MappingProxyType(
            {name: self.registry.get(name) for name in self.registry.list_partials()}
        )

    @property
    def helpers(self) -> Mapping[str, Any]:
        """Read-only view of template globals."""
        return MappingProxyType(self.env.globals)

    @property
    def decorators(self) -> Mapping[str, Callable[..., Any]]:
        """Read-only view of template filters."""
        return MappingProxyType(self.env.filters)

    def get_variables(self, template: str) -> set[str]:
        """
        Get the variables used in a template.

        Note: This uses AST analysis and may not catch all dynamic variables.

        Args:
            template: Partial name or inline template string

        Returns:
            Set of variable names
        """
        source = self.registry.get_source(template) if self.registry.has(template) else template
        try:
            ast = self.env.parse(source)
        except JinjaTemplateError as e:
            raise TemplateError(f"Template compilation failed: {e}") from e
        return meta.find_undeclared_variables(ast)


def _items(name: str | Mapping[str, Any], value: Any) -> list[tuple[str, Any]]:
    if isinstance(name, Mapping):
        return list(name.items())
    return [(name, value)]
