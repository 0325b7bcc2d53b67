"""Sorting, filtering and environment variable substitution on documents."""

from functools import lru_cache
from typing import Callable, Iterator
import os
import re
from .entities import Property, Section
from .interface import Document
from .utils import normalize_name

### Sorting


def _by_name(element: Property | Section) -> str:
    return normalize_name(element.name)


def sort_properties_by_name(target: Section | Document) -> None:
    """Sort properties by name (case-insensitive, stable).

    Args:
        target (Section | Document): A section or a document. For a document the
            default section and every named section are sorted.
    """
    if isinstance(target, Section):
        target._raw_properties().sort(key=_by_name)
        return
    for section in (target.default_section, *target):
        sort_properties_by_name(section)


def sort_sections_by_name(document: Document) -> None:
    """Sort the named sections by name (case-insensitive, stable)."""
    document._raw_sections().sort(key=_by_name)


def sort_all_by_name(document: Document) -> None:
    sort_sections_by_name(document)
    sort_properties_by_name(document)


### Filtering


@lru_cache(maxsize=128)
def _compile(pattern: str) -> re.Pattern:
    if not pattern:
        raise ValueError("Name pattern cannot be empty.")
    return re.compile(pattern, re.IGNORECASE)


def sections_where(
    document: Document, predicate: Callable[[Section], bool]
) -> list[Section]:
    return [section for section in document if predicate(section)]


def sections_by_pattern(document: Document, pattern: str) -> list[Section]:
    """Sections whose name matches the regular expression pattern (case-insensitive,
    anywhere in the name)."""
    regex = _compile(pattern)
    return [section for section in document if regex.search(section.name)]


def properties_where(
    section: Section, predicate: Callable[[Property], bool]
) -> list[Property]:
    return [prop for prop in section if predicate(prop)]


def properties_by_pattern(section: Section, pattern: str) -> list[Property]:
    """Properties whose key matches the regular expression pattern (case-insensitive,
    anywhere in the key)."""
    regex = _compile(pattern)
    return [prop for prop in section if regex.search(prop.name)]


def properties_with_value(section: Section, value: str) -> list[Property]:
    return [prop for prop in section if prop.value == value]


def properties_containing(section: Section, substring: str) -> list[Property]:
    return [prop for prop in section if substring in prop.value]


def _all_sections(document: Document) -> Iterator[Section]:
    yield document.default_section
    yield from document


def find_properties_by_name(
    document: Document, name: str
) -> list[tuple[Section, Property]]:
    """Every (section, property) pair with the key name, default section first."""
    if not name:
        raise ValueError("Property name cannot be empty.")
    return [
        (section, prop)
        for section in _all_sections(document)
        if (prop := section.get_property(name)) is not None
    ]


def find_properties_by_value(
    document: Document, value: str
) -> list[tuple[Section, Property]]:
    """Every (section, property) pair whose value equals value, default section first."""
    return [
        (section, prop)
        for section in _all_sections(document)
        for prop in section
        if prop.value == value
    ]


def copy_with_sections(
    document: Document, section_filter: Callable[[Section], bool]
) -> Document:
    """New document with the default section's properties and the sections
    section_filter returns True for. Everything is cloned."""
    new = Document(document.comment_prefixes, document.default_comment_prefix)
    new.default_section.add_properties(
        prop.clone() for prop in document.default_section
    )
    new.add_sections(
        section.clone() for section in document if section_filter(section)
    )
    return new


def copy_with_properties(
    section: Section, property_filter: Callable[[Property], bool]
) -> Section:
    """Clone of section holding only the properties property_filter returns True for."""
    return Section(
        section.name,
        properties=(prop.clone() for prop in section if property_filter(prop)),
        comment=None if section.comment is None else section.comment.clone(),
        pre_comments=section.pre_comments.clone(),
    )


### Environment variables

_ENV_VAR = re.compile(r"\$\{([^}]+)\}|%([^%]+)%")
"""${VAR} or %VAR%"""


def substitute_value(value: str) -> str:
    """Replace ${VAR} and %VAR% with the environment variable's value. Unknown
    variables are left as they are."""

    def replace(match: re.Match) -> str:
        name = match.group(1) if match.group(1) is not None else match.group(2)
        return os.environ.get(name, match.group(0))

    return _ENV_VAR.sub(replace, value) if value else value


def substitute_environment_variables(target: Document | Section | Property) -> int:
    """Substitute environment variables in property values in place.

    Args:
        target (Document | Section | Property): What to substitute in. A document
            includes its default section.

    Returns:
        int: Number of properties whose value changed.
    """
    if isinstance(target, Property):
        substituted = substitute_value(target.value)
        if substituted == target.value:
            return 0
        target.value = substituted
        return 1
    if isinstance(target, Section):
        return sum(substitute_environment_variables(prop) for prop in target)
    return sum(
        substitute_environment_variables(section) for section in _all_sections(target)
    )
