"""Rendering of a Document as ini text."""

from typing import TYPE_CHECKING, Iterable, TextIO
from .entities import CommentCollection, Property, Section
from .globals import ESCAPE_TABLE, NEWLINE, QUOTE, SPECIAL_CHARS

if TYPE_CHECKING:
    from .interface import Document


def escape(value: str) -> str:
    """Replace every special character with its escape sequence."""
    return "".join(ESCAPE_TABLE.get(char, char) for char in value)


def needs_quoting(value: str, comment_prefixes: Iterable[str] = ()) -> bool:
    """Whether value can only be written inside quotes.

    That is the case for values holding a special character or one of
    comment_prefixes, or starting or ending with whitespace.
    """
    if not value:
        return False
    if not SPECIAL_CHARS.isdisjoint(value):
        return True
    if not set(comment_prefixes).isdisjoint(value):
        return True
    return value[0].isspace() or value[-1].isspace()


def format_value(prop: Property, comment_prefixes: Iterable[str] = ()) -> str:
    if prop.is_quoted or needs_quoting(prop.value, comment_prefixes):
        return f"{QUOTE}{escape(prop.value)}{QUOTE}"
    return prop.value


class _WriteIni:

    def __init__(self, document: "Document", newline: str = NEWLINE) -> None:
        self.document = document
        self.prefix = document.default_comment_prefix
        self.prefixes = document.comment_prefixes
        self.newline = newline
        self.lines: list[str] = []

    def _comments(self, comments: CommentCollection) -> None:
        self.lines.extend(comment.to_string(self.prefix) for comment in comments)

    def _inline(self, line: str, element: Property | Section) -> str:
        if element.comment is not None and element.comment.value:
            return f"{line} {element.comment.to_string(self.prefix)}"
        return line

    def _properties(self, section: Section) -> None:
        for prop in section:
            if prop.name[0] in self.prefixes:
                raise ValueError(
                    f"Property '{prop.name}' in section '{section.name}' starts with "
                    "a comment prefix and can't be written."
                )
            self._comments(prop.pre_comments)
            self.lines.append(
                self._inline(f"{prop.name} = {format_value(prop, self.prefixes)}", prop)
            )

    def _section(self, section: Section) -> None:
        self._comments(section.pre_comments)
        self.lines.append(self._inline(f"[{section.name}]", section))
        self._properties(section)

    def to_string(self) -> str:
        default_section = self.document.default_section
        self._properties(default_section)

        for index, section in enumerate(self.document):
            if index or len(default_section):
                # blank line between blocks
                self.lines.append("")
            self._section(section)

        if not self.lines:
            return ""
        return self.newline.join(self.lines) + self.newline


def dumps(document: "Document", newline: str = NEWLINE) -> str:
    """Render document as ini text.

    Comments are written with the document's default comment prefix. Values holding
    special characters, a comment prefix or surrounding whitespace are quoted and
    escaped even if they are not marked as quoted. The document is not modified.

    Args:
        document (Document): The document to render.
        newline (str, optional): Line terminator. Defaults to "\\n".

    Raises:
        ValueError: If a key starts with one of the document's comment prefixes.

    Returns:
        str: The ini text, ending with newline (empty for an empty document).
    """
    return _WriteIni(document, newline).to_string()


def dump(document: "Document", fp: TextIO, newline: str = NEWLINE) -> None:
    """Write document as ini text to a text stream. Cf. dumps."""
    fp.write(dumps(document, newline))
