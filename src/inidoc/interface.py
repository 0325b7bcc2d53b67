"""Interface classes and functions exist for coder interaction: the Document and the
load and save functions around it."""

from contextlib import contextmanager
from pathlib import Path
from typing import (
    Any,
    AsyncIterable,
    Callable,
    Iterable,
    Iterator,
    IO,
    Self,
    TextIO,
    overload,
)
import asyncio
import copy
import os
import re
import stat
import tempfile
from charset_normalizer import from_bytes as read_from_bytes
from .args import Parameters
from .entities import Section
from .exceptions_warnings import ParsingError, ParsingException
from .globals import (
    DEFAULT_COMMENT_PREFIXES,
    DEFAULT_SECTION_NAME,
    FILE_SHARES,
    LINE_BREAKS,
    NEWLINE,
    FileShare,
)
from .reader import _ReadIni
from .utils import NamedList, copy_doc
from .writer import dumps

if os.name == "nt":  # pragma: no cover - platform specific
    import msvcrt
else:  # pragma: no cover - platform specific
    import fcntl


class Document:
    """An ini document: the default section (properties before the first header)
    followed by the named sections. Section names are unique regardless of case."""

    def __init__(
        self,
        comment_prefixes: str | Iterable[str] = DEFAULT_COMMENT_PREFIXES,
        default_comment_prefix: str | None = None,
    ) -> None:
        """
        Args:
            comment_prefixes (str | Iterable[str], optional): Characters starting a
                comment. Defaults to (";", "#").
            default_comment_prefix (str | None, optional): Prefix comments are written
                with, one of comment_prefixes. If None, the first of them is taken.
                Defaults to None.
        """
        # validation is shared with Parameters
        self._markers = Parameters(
            comment_prefixes=comment_prefixes,
            default_comment_prefix=default_comment_prefix,
        )
        self._default_section = Section(DEFAULT_SECTION_NAME)
        self._sections: NamedList[Section] = NamedList()
        self._parsing_errors: list[ParsingError] = []
        self._parsing_error_count: int = 0

    @classmethod
    def from_parameters(cls, parameters: Parameters) -> Self:
        return cls(parameters.comment_prefixes, parameters.default_comment_prefix)

    # ----------
    # markers
    # ----------

    @property
    def comment_prefixes(self) -> tuple[str, ...]:
        return self._markers.comment_prefixes

    @comment_prefixes.setter
    def comment_prefixes(self, value: str | Iterable[str]) -> None:
        self._markers.comment_prefixes = value

    @property
    def default_comment_prefix(self) -> str:
        return self._markers.default_comment_prefix

    @default_comment_prefix.setter
    def default_comment_prefix(self, value: str) -> None:
        self._markers.default_comment_prefix = value

    # ----------
    # parsing errors
    # ----------

    @property
    def parsing_errors(self) -> tuple[ParsingError, ...]:
        """Errors collected while loading (only with collect_errors)."""
        return tuple(self._parsing_errors)

    @property
    def parsing_error_count(self) -> int:
        """Number of collected errors, including those beyond max_parsing_errors
        that weren't stored."""
        return self._parsing_error_count

    @property
    def has_parsing_errors(self) -> bool:
        return self._parsing_error_count > 0

    def raise_for_errors(self) -> None:
        """Raise if errors were collected while loading.

        Raises:
            ParsingException: Holding every stored ParsingError.
        """
        if self.has_parsing_errors:
            raise ParsingException(
                f"Failed to parse ini: {self._parsing_error_count} line(s) skipped",
                self._parsing_errors,
            )

    # ----------
    # access
    # ----------

    @property
    def default_section(self) -> Section:
        """Section holding the properties before the first header. Can't be removed."""
        return self._default_section

    @property
    def sections(self) -> tuple[Section, ...]:
        return tuple(self._sections)

    def __len__(self) -> int:
        return len(self._sections)

    def __iter__(self) -> Iterator[Section]:
        return iter(self._sections)

    def __contains__(self, name: object) -> bool:
        return name in self._sections

    def __getitem__(self, key: int | str) -> Section:
        if isinstance(key, int):
            return self._sections[key]
        if (section := self._sections.get(key)) is None:
            raise KeyError(key)
        return section

    @overload
    def get_section(self, key: str) -> Section | None: ...
    @overload
    def get_section(self, key: int) -> Section | None: ...
    def get_section(self, key: str | int) -> Section | None:
        """Get a section by name (case-insensitive) or position.

        Returns:
            Section | None: The section or None if it doesn't exist.
        """
        if isinstance(key, int):
            if 0 <= key < len(self._sections):
                return self._sections[key]
            return None
        return self._sections.get(key)

    def has_section(self, name: str | Section) -> bool:
        if isinstance(name, Section):
            name = name.name
        if not name:
            raise ValueError("Section name cannot be empty.")
        return name in self._sections

    def index_of(self, name: str) -> int | None:
        return self._sections.index_of(name)

    def _section_for(self, section: str | None) -> Section | None:
        if section is None:
            return self._default_section
        return self.get_section(section)

    def get_value(self, section: str | None, key: str, type_hint: Any = str) -> Any:
        """Get a property's value converted to type_hint.

        Args:
            section (str | None): Section name, None for the default section.
            key (str): The property key.
            type_hint (Any, optional): Cf. Property.get_value. Defaults to str.

        Raises:
            KeyError: If section or property doesn't exist.
            ValueError: If the value can't be converted.
        """
        if (target := self._section_for(section)) is None:
            raise KeyError(f"Section '{section}' not found")
        return target.get_value(key, type_hint)

    def get_value_or_default(
        self,
        section: str | None,
        key: str,
        type_hint: Any = str,
        default: Any = None,
    ) -> Any:
        if (target := self._section_for(section)) is None:
            return default
        return target.get_value_or_default(key, type_hint, default)

    # ----------
    # mutation
    # ----------

    def _as_section(self, section: Section | str) -> Section:
        section = section if isinstance(section, Section) else Section(section)
        if self.has_section(section):
            raise ValueError(f"Section '{section.name}' already exists.")
        return section

    def add_section(self, section: Section | str) -> Section:
        """Append a section.

        Args:
            section (Section | str): The section or the name of a new one.

        Raises:
            ValueError: If a section with that name already exists.

        Returns:
            Section: The added section.
        """
        section = self._as_section(section)
        self._sections.append(section)
        return section

    def add_sections(self, sections: Iterable[Section]) -> None:
        for section in sections:
            if section is not None:
                self.add_section(section)

    def insert_section(self, index: int, section: Section | str) -> Section:
        """Insert a section before index.

        Raises:
            IndexError: If index is out of range.
            ValueError: If a section with that name already exists.
        """
        if not 0 <= index <= len(self):
            raise IndexError("Section index out of range")
        section = self._as_section(section)
        self._sections.insert(index, section)
        return section

    def setdefault_section(self, name: str) -> Section:
        """Get the section called name, adding an empty one if it doesn't exist."""
        if (section := self.get_section(name)) is None:
            section = self.add_section(name)
        return section

    def remove_section(self, key: str | int | Section) -> bool:
        """Remove a section by name or position.

        Returns:
            bool: Whether a section was removed.
        """
        if isinstance(key, Section):
            key = key.name
        if isinstance(key, int):
            if not 0 <= key < len(self):
                return False
            self._sections.pop(key)
            return True
        return self._sections.remove_name(key) is not None

    def clear(self) -> None:
        """Remove all sections and errors. The default section is only cleared."""
        self._default_section.clear()
        self._sections.clear()
        self._parsing_errors.clear()
        self._parsing_error_count = 0

    def clone(self) -> Self:
        """Deep copy sharing no mutable state with this document."""
        return copy.deepcopy(self)

    def _raw_sections(self) -> NamedList[Section]:
        return self._sections

    def to_string(self, newline: str = NEWLINE) -> str:
        """Render the document as ini text. Cf. writer.dumps."""
        return dumps(self, newline)

    def __repr__(self) -> str:
        return (
            f"Document({len(self._default_section)} default properties, "
            f"{len(self)} sections)"
        )


# ---------- #
# Loading
# ---------- #

_LINE_SPLIT = re.compile("|".join(re.escape(br) for br in LINE_BREAKS))


def _parameters(parameters: Parameters | None, kwargs: dict[str, Any]) -> Parameters:
    """Parameters to read with. Passed parameters are copied before updating."""
    if parameters is None:
        return Parameters(**kwargs)
    return parameters.copy(**kwargs) if kwargs else parameters


def _new_reader(parameters: Parameters) -> _ReadIni:
    return _ReadIni(Document.from_parameters(parameters), parameters)


def _filter_sections(
    document: Document, section_filter: Callable[[str], bool] | None
) -> Document:
    if section_filter is not None:
        sections = document._raw_sections()
        sections.replace([s for s in sections if section_filter(s.name)])
    return document


def loads(text: str, parameters: Parameters | None = None, **kwargs) -> Document:
    """Read ini text into a new Document.

    Malformed lines are skipped. They are either collected on the document
    (collect_errors) or reported as IniParsingWarning.

    Args:
        text (str): The ini text.
        parameters (Parameters | None, optional): Reading parameters. Defaults to None
            (default parameters).
        **kwargs: Parameters to update parameters with (the passed object is copied,
            not modified).

    Raises:
        DuplicateElementError: If a throw_error duplicate policy is violated.

    Returns:
        Document: The read document.
    """
    return _new_reader(_parameters(parameters, kwargs)).read(_LINE_SPLIT.split(text))


@copy_doc(loads)
def load(fp: TextIO, parameters: Parameters | None = None, **kwargs) -> Document:
    return _new_reader(_parameters(parameters, kwargs)).read(fp)


@contextmanager
def _file_lock(fh: IO, exclusive: bool) -> Iterator[None]:
    """Hold an advisory lock on an open file."""
    if os.name == "nt":  # pragma: no cover - platform specific
        fh.seek(0)
        mode = msvcrt.LK_LOCK if exclusive else msvcrt.LK_RLCK
        msvcrt.locking(fh.fileno(), mode, 1)
    else:  # pragma: no cover - platform specific
        fcntl.flock(fh.fileno(), fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
    try:
        yield
    finally:
        if os.name == "nt":  # pragma: no cover - platform specific
            fh.seek(0)
            msvcrt.locking(fh.fileno(), msvcrt.LK_UNLCK, 1)
        else:  # pragma: no cover - platform specific
            fcntl.flock(fh.fileno(), fcntl.LOCK_UN)


def _read_bytes(path: Path, share: FileShare) -> bytes:
    if share not in FILE_SHARES:
        raise ValueError(f"Unknown share mode '{share}'. Choose one of {FILE_SHARES}.")
    with path.open("rb") as fh:
        if share == "read_write":
            return fh.read()
        with _file_lock(fh, exclusive=share == "none"):
            return fh.read()


def _decode(content: bytes, encoding: str | None) -> str:
    if encoding is None:
        best = read_from_bytes(content).best()
        text = content.decode("utf-8") if best is None else str(best)
    else:
        text = content.decode(encoding)
    return text.removeprefix("\ufeff")


def load_file(
    path: str | Path,
    encoding: str | None = None,
    parameters: Parameters | None = None,
    *,
    section_filter: Callable[[str], bool] | None = None,
    share: FileShare = "read",
    **kwargs,
) -> Document:
    """Read an ini file into a new Document.

    Args:
        path (str | Path): Path to the ini file.
        encoding (str | None, optional): Encoding of the file. If None, the encoding
            is detected. A byte order mark is always dropped. Defaults to None.
        parameters (Parameters | None, optional): Reading parameters. Defaults to None.
        section_filter (Callable[[str], bool] | None, optional): Only sections whose
            name it returns True for are kept. Applied after parsing. Defaults to None.
        share (FileShare, optional): Access other processes keep while reading.
            Defaults to "read".
        **kwargs: Parameters to update parameters with.

    Raises:
        DuplicateElementError: If a throw_error duplicate policy is violated.

    Returns:
        Document: The read document.
    """
    text = _decode(_read_bytes(Path(path), share), encoding)
    return _filter_sections(loads(text, parameters, **kwargs), section_filter)


async def loads_async(
    lines: AsyncIterable[str], parameters: Parameters | None = None, **kwargs
) -> Document:
    """Read ini lines from an async source into a new Document.

    Lines may keep their line terminators. Cf. loads for the arguments.
    """
    reader = _new_reader(_parameters(parameters, kwargs))
    async for line in lines:
        reader.feed_line(line)
    return reader.finish()


@copy_doc(load_file)
async def load_file_async(
    path: str | Path,
    encoding: str | None = None,
    parameters: Parameters | None = None,
    *,
    section_filter: Callable[[str], bool] | None = None,
    share: FileShare = "read",
    **kwargs,
) -> Document:
    content = await asyncio.to_thread(_read_bytes, Path(path), share)
    return _filter_sections(
        loads(_decode(content, encoding), parameters, **kwargs), section_filter
    )


# ---------- #
# Saving
# ---------- #


def save(
    path: str | Path,
    document: Document,
    encoding: str = "utf-8",
    newline: str = NEWLINE,
) -> None:
    """Write document to path atomically.

    The text is written to a locked temporary file next to path, which then
    replaces path. An existing path keeps its permission bits. On failure the
    temporary file is removed and path is untouched.

    Args:
        path (str | Path): Target file.
        document (Document): The document to write.
        encoding (str, optional): Encoding of the file. Defaults to "utf-8".
        newline (str, optional): Line terminator. Defaults to "\\n".
    """
    path = Path(path)
    text = dumps(document, newline)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
    )
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as fh:
            with _file_lock(fh, exclusive=True):
                fh.write(text)
                fh.flush()
                os.fsync(fh.fileno())
        if path.exists():
            # mkstemp creates 0600, the target keeps its mode
            os.chmod(tmp, stat.S_IMODE(path.stat().st_mode))
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


@copy_doc(save)
async def save_async(
    path: str | Path,
    document: Document,
    encoding: str = "utf-8",
    newline: str = NEWLINE,
) -> None:
    await asyncio.to_thread(save, path, document, encoding, newline)
