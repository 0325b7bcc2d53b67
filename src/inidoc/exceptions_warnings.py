"""inidoc-specific exceptions, warnings and the parsing error record"""

from dataclasses import dataclass
from typing import Literal

# ---------- #
# Records
# ---------- #

type ParsingErrorKind = Literal[
    "missing_closing_bracket",
    "empty_section_name",
    "invalid_section_name",
    "missing_equals",
    "empty_key",
    "unterminated_quote",
    "incomplete_escape",
    "content_after_quote",
    "invalid_quote_format",
    "line_too_long",
    "value_too_long",
    "too_many_sections",
    "too_many_properties",
]
"""Category of a skipped line."""


@dataclass(frozen=True, slots=True)
class ParsingError:
    """A line that was skipped while parsing.

    Args:
        line_number (int): 1-based number of the line.
        line (str): The raw line (cut for reporting).
        reason (str): Human readable reason.
        kind (ParsingErrorKind): Category of the error.
    """

    line_number: int
    line: str
    reason: str
    kind: ParsingErrorKind

    def __str__(self) -> str:
        return f"Line {self.line_number}: {self.reason}"


# ---------- #
# Exceptions
# ---------- #


class DuplicateElementError(ValueError):
    """Raised when a duplicate section or key is found under the throw_error policy."""

    def __init__(
        self,
        message: str,
        element_name: str,
        element_type: Literal["section", "property"],
        section_name: str | None = None,
    ) -> None:
        super().__init__(message)
        self.element_name = element_name
        self.element_type = element_type
        self.section_name = section_name


class ParsingException(Exception):
    """Raised on request when a document collected parsing errors."""

    MAX_LISTED_ERRORS = 10

    def __init__(self, message: str, errors: list[ParsingError] | tuple) -> None:
        super().__init__(message)
        self.errors: tuple[ParsingError, ...] = tuple(errors)
        first = self.errors[0] if self.errors else None
        self.line_number = first.line_number if first else None
        self.line = first.line if first else None

    def __str__(self) -> str:
        lines = [super().__str__(), f"Total errors: {len(self.errors)}"]
        for error in self.errors[: self.MAX_LISTED_ERRORS]:
            lines.append(f"  {error}")
            lines.append(f"    Content: {error.line}")
        if (remaining := len(self.errors) - self.MAX_LISTED_ERRORS) > 0:
            lines.append(f"  ... and {remaining} more errors")
        return "\n".join(lines)


class WrongType(Exception):
    """Raised by converter processors when a string can't be converted."""


# ---------- #
# Warnings
# ---------- #


class IniStructureWarning(Warning):
    """Raised when the ini violates the expected structure."""


class IniParsingWarning(IniStructureWarning):
    """Raised when a line is skipped and parsing errors are not collected."""


class SecurityLimitWarning(IniParsingWarning):
    """Raised when a line is skipped because a security limit was hit."""
