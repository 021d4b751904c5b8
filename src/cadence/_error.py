from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Span:
    """Character range of the offending rule segment, end exclusive."""

    start: int
    end: int

    @property
    def width(self) -> int:
        return max(self.end - self.start, 1)


class RuleError(Exception):
    span: Span | None
    input_text: str | None

    def __init__(
        self,
        message: str,
        span: Span | None = None,
        input_text: str | None = None,
    ) -> None:
        super().__init__(message)
        self.span = span
        self.input_text = input_text

    def display_rich(self) -> str:
        """Render the message with the rule text and a caret under the bad segment."""
        header = f"error: {self}"
        if not (self.span and self.input_text):
            return header
        indent = "  "
        marker = " " * self.span.start + "^" * self.span.width
        return "\n".join((header, indent + self.input_text, indent + marker))
