"""Ini entities are either a comment, a property or a section."""

from typing import Any, Iterable, Iterator, Self, overload
import copy
import re
from .duplicates import merge_properties
from .globals import (
    DEFAULT_COMMENT_PREFIX,
    DuplicatePolicy,
    DUPLICATE_POLICIES,
    KEY_VALUE_DELIMITER,
    LINE_BREAKS,
    NEWLINE,
    SECTION_CLOSE,
    SECTION_OPEN,
)
from .type_converters.converters import (
    convert_strict,
    format_array,
    parse_array,
    value_to_string,
)
from .utils import NamedList


def _has_line_break(string: str) -> bool:
    return "\r" in string or "\n" in string


class Comment:
    """Comment object holding a comment's text and the prefix it was written with."""

    def __init__(self, value: str = "", prefix: str = DEFAULT_COMMENT_PREFIX) -> None:
        """
        Args:
            value (str, optional): Text after the prefix, whitespace included.
                Must not contain line breaks. Defaults to "".
            prefix (str, optional): The comment prefix character. Defaults to ";".
        """
        self.prefix = prefix
        self.value = value

    @property
    def value(self) -> str:
        return self._value

    @value.setter
    def value(self, value: str) -> None:
        if _has_line_break(value):
            raise ValueError("Comment value cannot contain newline characters.")
        self._value = value

    def to_string(self, prefix: str | None = None) -> str:
        """Convert the Comment into an ini string.

        Args:
            prefix (str | None, optional): Prefix to use instead of the comment's own.
                Defaults to None.

        Returns:
            str: The ini string.
        """
        return f"{self.prefix if prefix is None else prefix}{self.value}"

    def clone(self) -> Self:
        return type(self)(self.value, self.prefix)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Comment):
            return (self.prefix, self.value) == (other.prefix, other.value)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"Comment({self.value!r}, prefix={self.prefix!r})"


class CommentCollection(list[Comment]):
    """Ordered group of single-line Comments."""

    def __init__(self, comments: Iterable[Comment | str] = ()) -> None:
        super().__init__(
            Comment(c) if isinstance(c, str) else c for c in comments if c is not None
        )

    @classmethod
    def from_multiline_text(cls, text: str | None) -> Self:
        """Create a collection with one Comment per line of text."""
        collection = cls()
        collection.set_multiline_text(text)
        return collection

    def to_multiline_text(self) -> str:
        """Join the comment values with a newline."""
        return NEWLINE.join(comment.value for comment in self)

    def set_multiline_text(self, text: str | None) -> None:
        """Replace the comments with one Comment per line of text.

        Args:
            text (str | None): Text to split on "\\r\\n", "\\r" and "\\n". Empty
                or None clears the collection.
        """
        if not text:
            self.clear()
            return
        lines = re.split("|".join(LINE_BREAKS), text)
        self[:] = [Comment(line) for line in lines]

    def to_string(self, prefix: str | None = None) -> str:
        """Convert group of Comments to one ini string (one line per Comment).

        Args:
            prefix (str | None, optional): Prefix for the comments. If None, each
                comment keeps its own prefix.

        Returns:
            str: The Comments as one string.
        """
        return NEWLINE.join(comment.to_string(prefix) for comment in self)

    def clone(self) -> Self:
        return type(self)(comment.clone() for comment in self)


class _Element:
    """Base for named entities carrying an inline comment and pre-comments."""

    def __init__(
        self,
        name: str,
        comment: Comment | str | None = None,
        pre_comments: Iterable[Comment | str] = (),
    ) -> None:
        self._validate_name(name)
        self._name = name
        self.comment = comment
        self._pre_comments = CommentCollection(pre_comments)

    @classmethod
    def _validate_name(cls, name: str) -> None:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__name__} name must be a string.")
        if not name or name.isspace():
            raise ValueError(f"{cls.__name__} name cannot be empty or whitespace.")
        if name != name.strip():
            raise ValueError(
                f"{cls.__name__} name cannot have leading or trailing whitespace."
            )
        if _has_line_break(name):
            raise ValueError(f"{cls.__name__} name cannot contain newline characters.")

    @property
    def name(self) -> str:
        return self._name

    @property
    def comment(self) -> Comment | None:
        """The inline comment written on the same line."""
        return self._comment

    @comment.setter
    def comment(self, value: Comment | str | None) -> None:
        self._comment = Comment(value) if isinstance(value, str) else value

    @property
    def pre_comments(self) -> CommentCollection:
        """Comment lines written directly above the entity."""
        return self._pre_comments

    @pre_comments.setter
    def pre_comments(self, value: Iterable[Comment | str]) -> None:
        self._pre_comments = CommentCollection(value)

    def append_comment(self, comment: Comment | str | None) -> None:
        """Append text to the inline comment (or set it if there is none)."""
        if comment is None:
            return
        if isinstance(comment, str):
            comment = Comment(comment)
        if self._comment is None:
            self._comment = comment.clone()
        else:
            self._comment = Comment(
                self._comment.value + comment.value, self._comment.prefix
            )

    def clone(self) -> Self:
        """Deep copy sharing no mutable state with this entity."""
        return copy.deepcopy(self)


class Property(_Element):
    """A key/value pair of a section."""

    def __init__(
        self,
        name: str,
        value: str = "",
        is_quoted: bool = False,
        comment: Comment | str | None = None,
        pre_comments: Iterable[Comment | str] = (),
    ) -> None:
        """
        Args:
            name (str): The key. Immutable after construction.
            value (str, optional): The value. Defaults to "".
            is_quoted (bool, optional): Whether the value is written in quotes.
                Values containing line breaks are always quoted. Defaults to False.
            comment (Comment | str | None, optional): Inline comment. Defaults to None.
            pre_comments (Iterable[Comment | str], optional): Comment lines above the
                property. Defaults to ().
        """
        super().__init__(name, comment, pre_comments)
        self._is_quoted = bool(is_quoted)
        self.value = value

    @classmethod
    def _validate_name(cls, name: str) -> None:
        super()._validate_name(name)
        if KEY_VALUE_DELIMITER in name:
            raise ValueError("Property name cannot contain an equals sign.")
        if name.startswith(SECTION_OPEN):
            raise ValueError("Property name cannot start with a bracket.")

    @property
    def value(self) -> str:
        return self._value

    @value.setter
    def value(self, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(
                "Property value must be a string, use set_value for other objects."
            )
        if _has_line_break(value):
            # a line break can only survive inside quotes
            self._is_quoted = True
        self._value = value

    @property
    def is_quoted(self) -> bool:
        return self._is_quoted

    @is_quoted.setter
    def is_quoted(self, value: bool) -> None:
        if not value and _has_line_break(self._value):
            raise ValueError("A value containing newline characters must be quoted.")
        self._is_quoted = bool(value)

    @property
    def is_empty(self) -> bool:
        return not self._value

    def set_value(self, value: Any) -> None:
        """Set the value from an arbitrary object (converted to a string)."""
        self.value = value_to_string(value)

    def get_value(self, type_hint: Any = str) -> Any:
        """Get the value converted to type_hint.

        Args:
            type_hint (Any, optional): str, int, float, complex, bool, list, list[T]
                or any callable taking the raw string. Defaults to str.

        Raises:
            ValueError: If the value can't be converted.

        Returns:
            Any: The converted value.
        """
        return convert_strict(self._value, type_hint)

    def get_value_or_default(self, type_hint: Any = str, default: Any = None) -> Any:
        try:
            return self.get_value(type_hint)
        except ValueError:
            return default

    def get_array(self, item_type: Any = str, max_elements: int = 10000) -> list[Any]:
        """Read the value in array notation, e.g. '{1, 2, "a, b"}'.

        Args:
            item_type (Any, optional): Type to convert every item to. Defaults to str.
            max_elements (int, optional): Maximum number of items, 0 for unlimited.
                Defaults to 10000.

        Raises:
            ValueError: If the value is no valid array or an item can't be converted.
        """
        return parse_array(self._value, item_type, max_elements)

    def set_array(self, values: Iterable[Any]) -> None:
        """Write values in array notation."""
        self.value = format_array(values or ())

    def __repr__(self) -> str:
        return (
            f"Property({self.name!r}, {self._value!r}"
            f"{', is_quoted=True' if self._is_quoted else ''})"
        )


class Section(_Element):
    """A named group of properties. Keys are unique regardless of case."""

    def __init__(
        self,
        name: str,
        properties: Iterable[Property] = (),
        comment: Comment | str | None = None,
        pre_comments: Iterable[Comment | str] = (),
    ) -> None:
        super().__init__(name, comment, pre_comments)
        self._properties: NamedList[Property] = NamedList()
        self.add_properties(properties)

    @classmethod
    def _validate_name(cls, name: str) -> None:
        super()._validate_name(name)
        if SECTION_OPEN in name or SECTION_CLOSE in name:
            raise ValueError("Section name cannot contain brackets.")

    # ----------
    # access
    # ----------

    @property
    def properties(self) -> tuple[Property, ...]:
        return tuple(self._properties)

    def __len__(self) -> int:
        return len(self._properties)

    def __iter__(self) -> Iterator[Property]:
        return iter(self._properties)

    def __contains__(self, key: object) -> bool:
        return key in self._properties

    def __getitem__(self, key: int | str) -> Property:
        if isinstance(key, int):
            return self._properties[key]
        if (prop := self._properties.get(key)) is None:
            raise KeyError(key)
        return prop

    @overload
    def get_property(self, key: str) -> Property | None: ...
    @overload
    def get_property(self, key: int) -> Property | None: ...
    def get_property(self, key: str | int) -> Property | None:
        """Get a property by key (case-insensitive) or position.

        Returns:
            Property | None: The property or None if it doesn't exist.
        """
        if isinstance(key, int):
            if 0 <= key < len(self._properties):
                return self._properties[key]
            return None
        return self._properties.get(key)

    def has_property(self, key: str | Property) -> bool:
        if isinstance(key, Property):
            key = key.name
        if not key:
            raise ValueError("Property key cannot be empty.")
        return key in self._properties

    def index_of(self, key: str) -> int | None:
        """Position of the property with key or None."""
        return self._properties.index_of(key)

    def get_value(self, key: str, type_hint: Any = str) -> Any:
        """Get a property's value converted to type_hint.

        Raises:
            KeyError: If the property doesn't exist.
            ValueError: If the value can't be converted.
        """
        if (prop := self.get_property(key)) is None:
            raise KeyError(f"Property '{key}' not found in section '{self.name}'")
        return prop.get_value(type_hint)

    def get_value_or_default(
        self, key: str, type_hint: Any = str, default: Any = None
    ) -> Any:
        if (prop := self.get_property(key)) is None:
            return default
        return prop.get_value_or_default(type_hint, default)

    # ----------
    # mutation
    # ----------

    def _as_property(self, prop: Property | str, value: Any) -> Property:
        if isinstance(prop, Property):
            return prop
        new = Property(prop)
        new.set_value(value)
        return new

    def add_property(self, prop: Property | str, value: Any = "") -> Property:
        """Append a property.

        Args:
            prop (Property | str): The property or the key of a new one.
            value (Any, optional): Value of the new property (ignored if prop is a
                Property). Defaults to "".

        Raises:
            ValueError: If a property with that key already exists.

        Returns:
            Property: The added property.
        """
        prop = self._as_property(prop, value)
        if self.has_property(prop):
            raise ValueError(
                f"Property '{prop.name}' already exists in section '{self.name}'."
            )
        self._properties.append(prop)
        return prop

    def add_properties(self, properties: Iterable[Property]) -> None:
        for prop in properties:
            if prop is not None:
                self.add_property(prop)

    def insert_property(
        self, position: int | str, prop: Property | str, value: Any = ""
    ) -> Property:
        """Insert a property before position.

        Args:
            position (int | str): Index or key of the property to insert before.
            prop (Property | str): The property or the key of a new one.
            value (Any, optional): Value of the new property. Defaults to "".

        Raises:
            KeyError: If position is a key that doesn't exist.
            IndexError: If position is an index out of range.
            ValueError: If a property with that key already exists.
        """
        if isinstance(position, str):
            if (index := self.index_of(position)) is None:
                raise KeyError(f"Target key '{position}' not found")
            position = index
        if not 0 <= position <= len(self):
            raise IndexError("Property index out of range")
        prop = self._as_property(prop, value)
        if self.has_property(prop):
            raise ValueError(
                f"Property '{prop.name}' already exists in section '{self.name}'."
            )
        self._properties.insert(position, prop)
        return prop

    def set_property(self, key: str, value: Any) -> Property:
        """Update a property's value or add it if it doesn't exist."""
        if (prop := self.get_property(key)) is None:
            return self.add_property(key, value)
        prop.set_value(value)
        return prop

    def remove_property(self, key: str | int) -> bool:
        """Remove a property by key or position.

        Returns:
            bool: Whether a property was removed.
        """
        if isinstance(key, int):
            if not 0 <= key < len(self):
                return False
            self._properties.pop(key)
            return True
        return self._properties.remove_name(key) is not None

    def clear(self) -> None:
        """Remove all properties and comments."""
        self._pre_comments.clear()
        self._comment = None
        self._properties.clear()

    def merge_from(
        self, section: "Section", key_policy: DuplicatePolicy = "first_win"
    ) -> None:
        """Fold the properties of another section into this one.

        The other section is cloned first. Its properties are appended and key
        collisions are resolved with key_policy. With "last_win" the other
        section's comments replace these ones, with "throw_error" they are appended.

        Raises:
            DuplicateElementError: If key_policy is "throw_error" and a key collides.
        """
        if key_policy not in DUPLICATE_POLICIES:
            raise ValueError(f"Unknown duplicate key policy '{key_policy}'.")
        incoming = section.clone()
        merged = merge_properties(
            list(self._properties), list(incoming._properties), key_policy, self.name
        )
        if key_policy == "last_win":
            self._pre_comments = incoming._pre_comments
            self._comment = incoming._comment
        elif key_policy == "throw_error":
            self._pre_comments.extend(incoming._pre_comments)
            self.append_comment(incoming._comment)
        self._properties.replace(merged)

    def _raw_properties(self) -> NamedList[Property]:
        return self._properties

    def __repr__(self) -> str:
        return f"Section({self.name!r}, {len(self)} properties)"
