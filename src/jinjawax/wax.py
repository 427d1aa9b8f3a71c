"""Wax: filesystem-driven registration and context-aware rendering."""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from jinja2 import Environment

from .config import WaxConfig
from .loading import DEFAULT_LOADERS, CacheKey
from .resolve import reducer, resolve_value
from .templating import CompiledTemplate, TemplateEngine
from .types import FileLoader, RenderCallback, RenderFunction, TemplateOptions

logger = logging.getLogger(__name__)

PARENT_KEY = "_parent"


class TemplateFileLoader:
    """
    Loader that compiles template files into render functions.

    Loaders for the same engine and compile options compare equal, so a
    module cache shares their results and keeps apart those compiled with
    other options.
    """

    def __init__(
        self, engine: TemplateEngine, compile_options: Mapping[str, Any] | None = None
    ):
        self.engine = engine
        self.compile_options = compile_options

    def __call__(self, path: Path) -> CompiledTemplate:
        return self.engine.compile(path.read_text(encoding="utf-8"), self.compile_options)

    def _key(self) -> tuple[int, str]:
        options = sorted((self.compile_options or {}).items())
        return id(self.engine), repr(options)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TemplateFileLoader):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())


class Wax:
    """
    Loads partials, helpers, decorators and data into a template engine and
    compiles templates whose renders are pre-seeded with shared context.

    Example:
        wax = (
            Wax(TemplateEngine(), cwd="site")
            .partials("partials/**/*.jinja")
            .helpers("helpers/*.py")
            .data("data/*.json")
        )

        render = wax.compile("{{ title }} - {% include 'layouts/footer' %}")
        render({"title": "Home"})
    """

    def __init__(
        self,
        engine: TemplateEngine | Environment | None = None,
        config: WaxConfig | None = None,
        **options: Any,
    ):
        """
        Initialize Wax.

        Args:
            engine: Engine handle, or a Jinja environment to wrap in one.
                Defaults to config.engine, then to a fresh TemplateEngine.
            config: Base configuration (defaults to WaxConfig())
            **options: Overrides applied on top of config
        """
        config = (config or WaxConfig()).merge(options)
        if engine is None:
            engine = config.engine
        if engine is None:
            engine = TemplateEngine()
        elif isinstance(engine, Environment):
            engine = TemplateEngine(environment=engine)

        self.template_engine = engine
        self.config = config.merge(engine=engine)
        self.context: dict[str, Any] = {}
        self.cache: dict[str, RenderFunction] = {}
        self._module_cache: dict[CacheKey, Any] = {}

    def _options(self, overrides: Mapping[str, Any], keygen_field: str) -> WaxConfig:
        config = self.config.merge(overrides)
        return config.merge(
            keygen=getattr(config, keygen_field),
            reducer=config.reducer or reducer,
        )

    def _loaders(self, config: WaxConfig) -> dict[str, FileLoader]:
        """Suffix loaders for one registration call, with template files compiled."""
        compile_file = TemplateFileLoader(config.engine, config.compile_options)
        loaders = dict(DEFAULT_LOADERS)
        for extension in config.extensions:
            loaders[extension] = compile_file
        return loaders

    def _resolve(
        self, config: WaxConfig, source: Any, loaders: Mapping[str, FileLoader]
    ) -> dict[str, Any]:
        cache = None if config.bust_cache else self._module_cache
        return resolve_value(config, source, loaders, cache)

    def partials(self, partials: Any, **options: Any) -> "Wax":
        """Register partials from a glob, mapping or callable."""
        config = self._options(options, "parse_partial_name")
        resolved = self._resolve(config, partials, self._loaders(config))
        logger.debug(f"Registering {len(resolved)} partial(s)")
        config.engine.register_partial(resolved)
        return self

    def helpers(self, helpers: Any, **options: Any) -> "Wax":
        """Register helpers from a glob, mapping or callable."""
        config = self._options(options, "parse_helper_name")
        resolved = self._resolve(config, helpers, self._loaders(config))
        logger.debug(f"Registering {len(resolved)} helper(s)")
        config.engine.register_helper(resolved)
        return self

    def decorators(self, decorators: Any, **options: Any) -> "Wax":
        """Register decorators from a glob, mapping or callable."""
        config = self._options(options, "parse_decorator_name")
        resolved = self._resolve(config, decorators, self._loaders(config))
        logger.debug(f"Registering {len(resolved)} decorator(s)")
        config.engine.register_decorator(resolved)
        return self

    def data(self, data: Any, **options: Any) -> "Wax":
        """Merge data from a glob, mapping or callable into the shared context."""
        config = self._options(options, "parse_data_name")
        resolved = self._resolve(config, data, DEFAULT_LOADERS)
        logger.debug(f"Merging {len(resolved)} data key(s) into context")
        self.context.update(resolved)
        return self

    def compile(
        self,
        template: str | RenderFunction,
        compile_options: Mapping[str, Any] | None = None,
    ) -> RenderFunction:
        """
        Wrap a template so each render sees the shared context.

        Top-level variables are the context overlaid with the render data,
        plus ``_parent`` (the context itself). ``_data.global`` and
        ``_data.local`` carry the context and the render data respectively,
        each with the same ``_parent``.

        Args:
            template: Template source, or an already compiled render function
            compile_options: Merged over config.compile_options
        """
        config = self.config
        context = self.context

        if not callable(template):
            options = {**(config.compile_options or {}), **(compile_options or {})}
            template = config.engine.compile(template, options)

        def render(
            data: Mapping[str, Any] | None = None,
            template_options: TemplateOptions | None = None,
        ) -> str:
            options: dict[str, Any] = {
                **(config.template_options or {}),
                **(template_options or {}),
            }
            frame = dict(options.get("data") or {})

            # {{ _data.global.foo }} and {{ _data.global._parent.foo }}
            shared = frame.get("global")
            frame["global"] = {PARENT_KEY: context, **(context if shared is None else shared)}

            # {{ _data.local.foo }} and {{ _data.local._parent.foo }}
            local = frame.get("local")
            frame["local"] = {PARENT_KEY: context, **((data or {}) if local is None else local)}

            options["data"] = frame

            # {{ foo }} and {{ _parent.foo }}
            return template({PARENT_KEY: context, **context, **(data or {})}, options)

        return render

    def render_file(self, file: str | Path, data: Mapping[str, Any] | None = None) -> str:
        """Render a template file, compiling it unless a cached copy may be reused."""
        key = str(file)
        template = self.cache.get(key)

        if template is None or self.config.bust_cache:
            logger.debug(f"Compiling {key}")
            template = self.compile(Path(file).read_text(encoding="utf-8"))
            self.cache[key] = template
        else:
            logger.debug(f"Render cache hit for {key}")

        return template(data)

    def engine(
        self,
        file: str | Path,
        data: Mapping[str, Any] | None,
        callback: RenderCallback,
    ) -> "Wax":
        """
        Render a template file for callback-style rendering pipelines.

        Calls ``callback(None, output)`` on success and ``callback(error)`` if
        reading, compiling or rendering fails. Runs synchronously.
        """
        try:
            output = self.render_file(file, data)
        except Exception as e:
            logger.debug(f"Rendering {file} failed: {e}")
            callback(e)
        else:
            callback(None, output)
        return self


def jinja_wax(engine: TemplateEngine | Environment | None = None, **config: Any) -> Wax:
    """Create a Wax instance around an engine handle."""
    return Wax(engine, **config)
