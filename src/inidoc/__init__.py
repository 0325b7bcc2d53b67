from .interface import (
    Document,
    loads,
    load,
    load_file,
    loads_async,
    load_file_async,
    save,
    save_async,
)
from .writer import dumps, dump
from .args import Parameters
from .entities import Comment, CommentCollection, Property, Section
from .exceptions_warnings import (
    DuplicateElementError,
    ParsingError,
    ParsingException,
    IniStructureWarning,
    IniParsingWarning,
    SecurityLimitWarning,
)
from .globals import DEFAULT_SECTION_NAME, DuplicatePolicy, FileShare
