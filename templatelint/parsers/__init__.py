"""
Template parsers.

This module provides the parser that turns template source into the AST
the rule engine walks.
"""

from typing import Dict, Optional, Type

from templatelint.parsers.base import BaseParser, ParseWarning, TemplateSyntaxError, WarningCallback
from templatelint.parsers.nodes import Template

# Registry of available parsers
_parsers: Dict[str, Type[BaseParser]] = {}


def register_parser(language: str):
    """Decorator to register a parser for a template language."""
    def decorator(cls: Type[BaseParser]) -> Type[BaseParser]:
        _parsers[language.lower()] = cls
        return cls
    return decorator


def get_parser(language: str = "handlebars") -> BaseParser:
    """Get a parser instance for a template language."""
    language = language.lower()

    aliases = {
        "hbs": "handlebars",
        "glimmer": "handlebars",
    }
    language = aliases.get(language, language)

    if language not in _parsers:
        raise ValueError(f"No parser registered for template language: {language}")
    return _parsers[language]()


def parse(
    source: str,
    module_name: Optional[str] = None,
    on_warning: Optional[WarningCallback] = None,
) -> Template:
    """Parse template source with the default parser."""
    return get_parser().parse(source, module_name=module_name, on_warning=on_warning)


def list_supported_languages() -> list:
    """List all languages with registered parsers."""
    return list(_parsers.keys())


# Import parsers to register them
from templatelint.parsers.handlebars import HandlebarsParser  # noqa: E402

__all__ = [
    "BaseParser",
    "HandlebarsParser",
    "ParseWarning",
    "Template",
    "TemplateSyntaxError",
    "WarningCallback",
    "get_parser",
    "list_supported_languages",
    "parse",
    "register_parser",
]
