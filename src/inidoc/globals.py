from typing import Literal

DEFAULT_SECTION_NAME = "$DEFAULT"
"""Name of the implicit section holding properties before the first header."""
DEFAULT_COMMENT_PREFIXES = (";", "#")
DEFAULT_COMMENT_PREFIX = ";"
SECTION_OPEN = "["
SECTION_CLOSE = "]"
KEY_VALUE_DELIMITER = "="
QUOTE = '"'
ESCAPE = "\\"
NEWLINE = "\n"
MAX_REPORTED_LINE_LENGTH = 200
"""Raw lines stored in a ParsingError are cut to this many characters."""

UNESCAPE_TABLE = {
    "0": "\0",
    "a": "\a",
    "b": "\b",
    "t": "\t",
    "r": "\r",
    "n": "\n",
    ";": ";",
    "#": "#",
    '"': '"',
    "\\": "\\",
}
"""Escape letter (after a backslash) to the character it stands for."""
ESCAPE_TABLE = {char: f"\\{letter}" for letter, char in UNESCAPE_TABLE.items()}
"""Character to its escape sequence inside a quoted value."""

SPECIAL_CHARS = frozenset(ESCAPE_TABLE)
"""Characters that force a value to be written quoted."""

LINE_BREAKS = ("\r\n", "\r", "\n")

INVALID_MARKERS = frozenset(
    (SECTION_OPEN, SECTION_CLOSE, KEY_VALUE_DELIMITER, QUOTE, ESCAPE, " ", "\t")
)
"""Characters that can't be used as comment prefixes."""

type DuplicatePolicy = Literal["first_win", "last_win", "merge", "throw_error"]
"""How repeated section names or keys are resolved after a parse.
    "first_win": Keeps the earliest occurrence.
    "last_win": Keeps the latest occurrence at its own position.
    "merge": Folds later occurrences into the first one.
    "throw_error": Aborts the load with a DuplicateElementError.
"""
DUPLICATE_POLICIES = ("first_win", "last_win", "merge", "throw_error")

type FileShare = Literal["none", "read", "read_write"]
"""Access other processes keep while a file is being read.
    "none": Exclusive lock.
    "read": Shared lock, concurrent readers allowed.
    "read_write": No lock.
"""
FILE_SHARES = ("none", "read", "read_write")
