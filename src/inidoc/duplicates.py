"""Resolution of repeated section names and keys after a parse pass."""

from typing import TYPE_CHECKING, Literal, Protocol
from .exceptions_warnings import DuplicateElementError
from .globals import DuplicatePolicy
from .utils import normalize_name

if TYPE_CHECKING:
    from .entities import Property, Section


class _Named(Protocol):
    @property
    def name(self) -> str: ...


def first_win[T: _Named](items: list[T]) -> list[T]:
    """Keep the earliest occurrence of every name."""
    seen: set[str] = set()
    kept = []
    for item in items:
        if (key := normalize_name(item.name)) not in seen:
            seen.add(key)
            kept.append(item)
    return kept


def last_win[T: _Named](items: list[T]) -> list[T]:
    """Keep the latest occurrence of every name at its own position.

    Two passes: find each name's last index, then keep only the items sitting
    at that index. Relative order of the survivors is unchanged.
    """
    last_index = {normalize_name(item.name): i for i, item in enumerate(items)}
    return [
        item for i, item in enumerate(items) if last_index[normalize_name(item.name)] == i
    ]


def throw_on_duplicate[T: _Named](
    items: list[T],
    element_type: Literal["section", "property"],
    section_name: str | None = None,
) -> list[T]:
    """Return items unchanged or raise on the first repeated name.

    Raises:
        DuplicateElementError: If a name occurs twice.
    """
    seen: set[str] = set()
    for item in items:
        if (key := normalize_name(item.name)) in seen:
            if element_type == "section":
                message = f"Duplicate section name '{item.name}' found"
            else:
                message = (
                    f"Duplicate property name '{item.name}' found in section "
                    f"'{section_name}'. Each property name must be unique within a section."
                )
            raise DuplicateElementError(message, item.name, element_type, section_name)
        seen.add(key)
    return items


def merge_keys(properties: list["Property"]) -> list["Property"]:
    """Fold repeated keys into their first occurrence.

    The survivor stays at the first position and takes the last occurrence's value,
    quoting and inline comment. Pre-comments of all occurrences are concatenated.
    """
    survivors: dict[str, "Property"] = {}
    kept = []
    for prop in properties:
        key = normalize_name(prop.name)
        if (first := survivors.get(key)) is None:
            survivors[key] = prop
            kept.append(prop)
            continue
        first.value = prop.value
        first.is_quoted = prop.is_quoted
        if prop.comment is not None:
            first.comment = prop.comment
        first.pre_comments.extend(prop.pre_comments)
    return kept


def resolve_keys(
    properties: list["Property"],
    key_policy: DuplicatePolicy,
    section_name: str | None = None,
) -> list["Property"]:
    """Apply key_policy to the properties of one section."""
    match key_policy:
        case "first_win":
            return first_win(properties)
        case "last_win":
            return last_win(properties)
        case "merge":
            return merge_keys(properties)
        case "throw_error":
            return throw_on_duplicate(properties, "property", section_name)
    raise ValueError(f"Unknown duplicate key policy '{key_policy}'.")


def merge_properties(
    existing: list["Property"],
    incoming: list["Property"],
    key_policy: DuplicatePolicy,
    section_name: str | None = None,
) -> list["Property"]:
    """Extend existing by incoming and resolve the collisions with key_policy."""
    return resolve_keys(existing + incoming, key_policy, section_name)


def merge_sections(
    sections: list["Section"], key_policy: DuplicatePolicy
) -> list["Section"]:
    """Fold every later same-named section into the first one."""
    survivors: dict[str, "Section"] = {}
    kept = []
    for section in sections:
        key = normalize_name(section.name)
        if (first := survivors.get(key)) is None:
            survivors[key] = section
            kept.append(section)
        else:
            first.merge_from(section, key_policy)
    return kept


def resolve_sections(
    sections: list["Section"],
    section_policy: DuplicatePolicy,
    key_policy: DuplicatePolicy,
) -> list["Section"]:
    """Apply section_policy to a document's sections."""
    match section_policy:
        case "first_win":
            return first_win(sections)
        case "last_win":
            return last_win(sections)
        case "merge":
            return merge_sections(sections, key_policy)
        case "throw_error":
            return throw_on_duplicate(sections, "section")
    raise ValueError(f"Unknown duplicate section policy '{section_policy}'.")
