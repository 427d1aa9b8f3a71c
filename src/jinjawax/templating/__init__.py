"""Jinja engine handle and partial registry."""

from .engine import CompiledTemplate, RegistryLoader, TemplateEngine
from .registry import PartialRegistry

__all__ = [
    "CompiledTemplate",
    "PartialRegistry",
    "RegistryLoader",
    "TemplateEngine",
]
