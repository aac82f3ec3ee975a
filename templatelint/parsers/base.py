"""
Base parser class and parse error types.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from templatelint.parsers.nodes import Template


class TemplateSyntaxError(Exception):
    """Raised when a template cannot be turned into an AST."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(self.__str__())

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"{self.message} (L{self.line}:C{self.column})"


@dataclass
class ParseWarning:
    """A non-fatal event reported by a parser, such as deprecated syntax."""
    message: str
    module_name: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    kind: str = "deprecation"


WarningCallback = Callable[[ParseWarning], None]


class BaseParser(ABC):
    """
    Base class for template parsers.

    A parser turns template source into a ``Template`` tree whose nodes all
    carry ``loc`` information, or raises ``TemplateSyntaxError``.
    """

    @property
    @abstractmethod
    def language(self) -> str:
        """Return the template language this parser handles."""
        pass

    @abstractmethod
    def parse(
        self,
        source: str,
        module_name: Optional[str] = None,
        on_warning: Optional[WarningCallback] = None,
    ) -> Template:
        """
        Parse template source into an AST.

        Args:
            source: The template source.
            module_name: The module being parsed (for warnings).
            on_warning: Called with a ``ParseWarning`` for every deprecation
                the parser notices.

        Raises:
            TemplateSyntaxError: If the source is not a valid template.
        """
        pass
