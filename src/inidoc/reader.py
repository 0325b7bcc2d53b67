"""Line by line reading of ini text into a Document."""

from collections import deque
from typing import TYPE_CHECKING, Iterable
import warnings
from .args import Parameters
from .duplicates import resolve_keys, resolve_sections
from .entities import Comment, Property, Section
from .exceptions_warnings import (
    IniParsingWarning,
    ParsingError,
    ParsingErrorKind,
    SecurityLimitWarning,
)
from .globals import (
    ESCAPE,
    KEY_VALUE_DELIMITER,
    MAX_REPORTED_LINE_LENGTH,
    QUOTE,
    SECTION_CLOSE,
    SECTION_OPEN,
    UNESCAPE_TABLE,
)
from .limits import (
    error_limit_reached,
    line_too_long,
    pending_comments_full,
    property_limit_reached,
    section_limit_reached,
    value_too_long,
)

if TYPE_CHECKING:
    from .interface import Document

_LIMIT_KINDS: frozenset[ParsingErrorKind] = frozenset(
    ("line_too_long", "value_too_long", "too_many_sections", "too_many_properties")
)


class _LineError(Exception):
    """A line can't be read and is being skipped."""

    def __init__(self, reason: str, kind: ParsingErrorKind) -> None:
        super().__init__(reason)
        self.reason = reason
        self.kind = kind


def strip_line_break(line: str) -> str:
    """Remove one trailing line terminator ("\\r\\n", "\\n" or "\\r")."""
    if line.endswith("\r\n"):
        return line[:-2]
    if line.endswith(("\n", "\r")):
        return line[:-1]
    return line


def unescape(text: str) -> str:
    """Resolve the escape sequences of a quoted value.

    Unknown escapes keep the escaped character, e.g. "\\z" becomes "z".

    Raises:
        ValueError: If text ends with a lone escape character.
    """
    chars: list[str] = []
    escaped = False
    for char in text:
        if escaped:
            chars.append(UNESCAPE_TABLE.get(char, char))
            escaped = False
        elif char == ESCAPE:
            escaped = True
        else:
            chars.append(char)
    if escaped:
        raise ValueError("Invalid escape sequence: incomplete escape marker")
    return "".join(chars)


def _split_quoted(text: str) -> tuple[str, str]:
    """Tokenize a value region starting with a quote.

    Returns:
        tuple[str, str]: The unescaped value and the text after the closing quote.
    """
    chars: list[str] = []
    escaped = False
    for position in range(1, len(text)):
        char = text[position]
        if escaped:
            chars.append(UNESCAPE_TABLE.get(char, char))
            escaped = False
        elif char == ESCAPE:
            escaped = True
        elif char == QUOTE:
            return "".join(chars), text[position + 1 :]
        else:
            chars.append(char)
    if escaped:
        raise _LineError(
            "Invalid escape sequence: incomplete escape marker", "incomplete_escape"
        )
    raise _LineError(
        "Unterminated quote: missing closing quotation mark", "unterminated_quote"
    )


def _find_prefix(text: str, prefixes: tuple[str, ...]) -> int:
    """Position of the first comment prefix in text or -1."""
    return next((i for i, char in enumerate(text) if char in prefixes), -1)


class _ReadIni:

    def __init__(
        self,
        target: "Document",
        parameters: Parameters,
    ) -> None:
        """Read ini lines into target. Lines are fed one by one with feed_line and the
        document is completed with finish."""
        self.target = target
        self.parameters = parameters
        self.prefixes = parameters.comment_prefixes

        # ----
        # define variables for read process
        # ----
        self.current_section: Section | None = target.default_section
        """Section properties are added to. None while a rejected section's lines
        are being dropped."""
        self.pending_comments: deque[Comment] = deque()
        self.section_count: int = 0

        self.line_number: int = 0
        self.line: str = ""
        # ----

    def read(self, lines: Iterable[str]) -> "Document":
        for line in lines:
            self.feed_line(line)
        return self.finish()

    def feed_line(self, line: str) -> None:
        """Classify one physical line and add what it holds to the document."""
        self.line_number += 1
        self.line = strip_line_break(line)

        try:
            if line_too_long(self.line, self.parameters):
                raise _LineError(
                    "Line length exceeds maximum "
                    f"({self.parameters.max_line_length} characters)",
                    "line_too_long",
                )

            content = self.line.strip()
            if not content:
                return

            if content[0] in self.prefixes:
                self._add_pending_comment(Comment(content[1:], content[0]))
            elif content[0] == SECTION_OPEN:
                self._handle_section(content)
            elif self.current_section is not None:
                self._handle_property(content)
        except _LineError as e:
            self._report(e.reason, e.kind)

    def finish(self) -> "Document":
        """Resolve duplicates once every line was fed.

        Comments left pending at the end of the input belong to nothing and are dropped.

        Raises:
            DuplicateElementError: If a throw_error policy is violated.
        """
        self.pending_comments.clear()
        sections = self.target._raw_sections()
        sections.purge()
        sections.replace(
            resolve_sections(
                list(sections),
                self.parameters.duplicate_section_policy,
                self.parameters.duplicate_key_policy,
            )
        )
        for section in (self.target.default_section, *sections):
            properties = section._raw_properties()
            properties.purge()
            properties.replace(
                resolve_keys(
                    list(properties), self.parameters.duplicate_key_policy, section.name
                )
            )
        return self.target

    # ----------
    # lines
    # ----------

    def _add_pending_comment(self, comment: Comment) -> None:
        if self.pending_comments and pending_comments_full(
            len(self.pending_comments), self.parameters
        ):
            # oldest comment makes room
            self.pending_comments.popleft()
        self.pending_comments.append(comment)

    def _take_pending_comments(self) -> list[Comment]:
        comments = list(self.pending_comments)
        self.pending_comments.clear()
        return comments

    def _handle_section(self, content: str) -> None:
        if (close := content.find(SECTION_CLOSE)) == -1:
            raise _LineError(
                "Missing closing bracket in section declaration",
                "missing_closing_bracket",
            )

        name = content[1:close].strip()
        if not name:
            raise _LineError("Section name cannot be empty", "empty_section_name")

        try:
            section = Section(name)
        except ValueError as e:
            raise _LineError(f"Invalid section name: {e}", "invalid_section_name") from e

        if section_limit_reached(self.section_count, self.parameters):
            # drop the section together with everything until the next header
            self.current_section = None
            self.pending_comments.clear()
            raise _LineError(
                f"Section limit exceeded (max {self.parameters.max_sections} sections)",
                "too_many_sections",
            )

        section.pre_comments = self._take_pending_comments()
        after = content[close + 1 :].lstrip()
        if after and after[0] in self.prefixes:
            section.comment = Comment(after[1:], after[0])

        self.target._raw_sections().append(section)
        self.section_count += 1
        self.current_section = section

    def _handle_property(self, content: str) -> None:
        assert self.current_section is not None

        if (equal_sign := content.find(KEY_VALUE_DELIMITER)) == -1:
            raise _LineError("Missing equals sign in key-value pair", "missing_equals")

        key = content[:equal_sign].strip()
        if not key:
            raise _LineError("Key is empty", "empty_key")

        value, is_quoted, comment = self._split_value(
            content[equal_sign + 1 :].lstrip()
        )

        if value_too_long(value, self.parameters):
            raise _LineError(
                "Value length exceeds maximum "
                f"({self.parameters.max_value_length} characters)",
                "value_too_long",
            )

        properties = self.current_section._raw_properties()
        if property_limit_reached(len(properties), self.parameters):
            raise _LineError(
                f"Property limit exceeded in section '{self.current_section.name}' "
                f"(max {self.parameters.max_properties_per_section} properties)",
                "too_many_properties",
            )

        prop = Property(key, value, is_quoted)
        prop.pre_comments = self._take_pending_comments()
        if comment is not None and comment.value:
            prop.comment = comment
        properties.append(prop)

    def _split_value(self, region: str) -> tuple[str, bool, Comment | None]:
        """Split a value region into value, quoting and inline comment."""
        if not region:
            return "", False, None

        if region[0] == QUOTE:
            value, rest = _split_quoted(region)
            rest = rest.lstrip()
            position = _find_prefix(rest, self.prefixes)
            if position == 0:
                return value, True, Comment(rest[1:], rest[0])
            if position > 0:
                raise _LineError(
                    "Invalid content after closing quote", "content_after_quote"
                )
            if rest.strip():
                raise _LineError("Invalid quote format", "invalid_quote_format")
            return value, True, None

        position = _find_prefix(region, self.prefixes)
        if position == -1:
            return region.rstrip(), False, None
        return (
            region[:position].rstrip(),
            False,
            Comment(region[position + 1 :], region[position]),
        )

    # ----------
    # errors
    # ----------

    def _report(self, reason: str, kind: ParsingErrorKind) -> None:
        """Store the skipped line on the document or warn about it."""
        error = ParsingError(
            line_number=self.line_number,
            line=self.line[:MAX_REPORTED_LINE_LENGTH],
            reason=reason,
            kind=kind,
        )
        if not self.parameters.collect_errors:
            warnings.warn(
                f"Line {self.line_number} is being ignored: {reason}.",
                SecurityLimitWarning if kind in _LIMIT_KINDS else IniParsingWarning,
                stacklevel=2,
            )
            return

        self.target._parsing_error_count += 1
        if not error_limit_reached(
            len(self.target._parsing_errors), self.parameters
        ):
            self.target._parsing_errors.append(error)
