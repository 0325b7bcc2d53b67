"""Converter functions turning property values into typed objects and back."""

from functools import wraps
from typing import (
    Callable,
    Any,
    Iterable,
    overload,
    get_args,
    get_origin,
)
import re
import contextlib
from ..exceptions_warnings import WrongType

type ScalarTypes = int | float | complex | bool
"""Possible scalar conversion result types."""
type ConvertibleTypes = ScalarTypes | str | list
"""Possible conversion result types."""


type TypeConverter[ConvertedType] = Callable[[Any], ConvertedType | Any]
"""Type of type converter functions. To create a type converter, use converter decorator."""


def converter[T](processor: Callable[[str], T]) -> TypeConverter[T]:
    """Create a new TypeConverter.

    Args:
        processor (Callable[[str], T]): Callable to process the string input and
            convert it into an instance of arbitrary type. If conversion is not
            possible, should raise exceptions_warnings.WrongType.

    Returns:
        TypeConverter[T]: TypeConverter that will return the processed input on call
            or the input itself if conversion was not possible.
    """

    @wraps(processor)
    def convert(value: Any) -> T | Any:
        if isinstance(value, str):
            with contextlib.suppress(WrongType):
                return processor(value)
        return value

    return convert


def string_converter(strip_whitespace: bool = False) -> TypeConverter[str]:
    """Create a new string converter.

    Args:
        strip_whitespace (bool, optional): Whether to strip leading and trailing
            whitespace from the string. Quoted values keep their whitespace on
            purpose, hence defaults to False.
    """

    @converter
    def to_string(string: str) -> str:
        return string.strip() if strip_whitespace else string

    return to_string


DEFAULT_STRING_CONVERTER = string_converter()
"""String converter with default conversion parameters."""


def bool_converter(
    true: str | tuple[str, ...] = ("1", "true", "yes", "y", "on"),
    false: str | tuple[str, ...] = ("0", "false", "no", "n", "off"),
) -> TypeConverter[bool]:
    """Create a new bool converter.

    Args:
        true (str | tuple[str, ...], optional): String(s) that should be regarded as True.
            Defaults to ("1", "true", "yes", "y", "on").
        false (str | tuple[str, ...], optional): String(s) that should be regarded as False.
            Defaults to ("0", "false", "no", "n", "off").

    Returns:
        TypeConverter[bool]: The bool converter.
    """

    if not isinstance(true, tuple):
        true = (true,)
    true = tuple(i.lower() for i in true)

    if not isinstance(false, tuple):
        false = (false,)
    false = tuple(i.lower() for i in false)

    @converter
    def to_bool(string: str) -> bool:
        """Converts a string to bool.

        Raises:
            WrongType: If conversion was unsuccessful.
        """
        string = string.lower().strip()
        if string in true:
            return True
        elif string in false:
            return False
        raise WrongType

    return to_bool


type Numerics = int | float | complex
"""Possible numeric conversion result types."""


def numeric_converter[
    T: Numerics
](
    numeric_type: type[T] | tuple[type[T], ...] = (int, float, complex),
    decimal_sep: str = ".",
    thousands_sep: str | None = None,
) -> TypeConverter[T]:
    """Create a new numeric type converter.

    Args:
        numeric_type (type[Numerics] | tuple[type[Numerics], ...], optional): The type
            to convert to. If multiple are given, the type converter will return the
            first type that the conversion was successful for.
            Defaults to (int, float, complex).
        decimal_sep (str, optional): Possible decimal separator inside the string.
            Defaults to ".".
        thousands_sep (str | None, optional): Possible thousands separator inside the
            string. Defaults to None (no thousands separator accepted).

    Returns:
        TypeConverter[int | float | complex]: The numeric type converter.
    """

    if not isinstance(numeric_type, tuple):
        numeric_type = (numeric_type,)

    @converter
    def to_num(string: str) -> T:
        """Convert string to numeric type.

        Raises:
            WrongType: If conversion was unsuccessful.
        """
        string = string.strip()
        if thousands_sep and thousands_sep in string:
            ts = re.escape(thousands_sep)
            # assure that thousands separator is actually separating thousands
            if any(
                len(dec) != 3 for dec in re.findall(rf"(?<={ts})\d+(?={ts}|$|\D)", string)
            ):
                raise WrongType
            string = string.replace(thousands_sep, "")
        if decimal_sep != "." and decimal_sep in string:
            if string.count(decimal_sep) > 1:
                raise WrongType
            string = string.replace(decimal_sep, ".")
        string = string.replace(" ", "")
        for numeric in numeric_type:
            with contextlib.suppress(ValueError):
                return numeric(string)
        raise WrongType

    return to_num


@overload
def list_converter[
    T
](
    delimiter: str = ",",
    remove_whitespace: bool = True,
    item_converter: TypeConverter[T] = ...,
) -> TypeConverter[list[T | Any]]: ...
@overload
def list_converter(
    delimiter: str = ",",
    remove_whitespace: bool = True,
    item_converter: None = None,
) -> TypeConverter[list[ScalarTypes | Any]]: ...
def list_converter[
    T
](
    delimiter: str = ",",
    remove_whitespace: bool = True,
    item_converter: TypeConverter[T] | None = None,
) -> TypeConverter[list[T | Any] | list[ScalarTypes | Any]]:
    """Create a new list type converter.

    Args:
        delimiter (str, optional): Delimiter that separates list items. Defaults to ",".
        remove_whitespace (bool, optional): Whether whitespace between items and
            delimiter should be removed. Defaults to True.
        item_converter (TypeConverter[Any]): TypeConverter to convert each list
            item with. If None, will guess scalar types. Defaults to None.

    Returns:
        TypeConverter[list]: The new list type converter.
    """

    if item_converter is None:
        item_converter = guess_converter(*get_args(ScalarTypes.__value__))

    split_delimiter = (
        rf"\s*{re.escape(delimiter)}\s*" if remove_whitespace else re.escape(delimiter)
    )

    @converter
    def to_list(string: str) -> list[T | str] | list[ScalarTypes | str]:
        if remove_whitespace:
            string = string.strip()
        if not string:
            return []
        return [
            item_converter(s) for s in re.split(pattern=split_delimiter, string=string)
        ]

    return to_list


def guess_converter(
    *types: type[Any] | TypeConverter,
    fallback: TypeConverter = DEFAULT_STRING_CONVERTER,
) -> TypeConverter:
    """Create a new type converter that guesses the type.

    Args:
        *types (type): The types to guess. If not provided, will guess numbers
            and booleans.
        fallback (TypeConverter, optional): Fallback converter if no type
            could be guessed.

    Returns:
        TypeConverter: The new Guess-TypeConverter.
    """

    if types:
        converters = tuple(_type_hint_to_converter(t) for t in types)
    else:
        converters = (DEFAULT_NUMERIC_CONVERTER, DEFAULT_BOOL_CONVERTER)

    @converter
    def guess(string: str) -> Any:
        for conv in converters:
            if conv is not None and (guess := conv(string)) is not string:
                return guess
        return fallback(string)

    return guess


def _type_hint_to_converter[T](type_hint: Any) -> TypeConverter[T] | None:
    """Convert a type to its respective TypeConverter.

    Args:
        type_hint (type): The type to convert. Either one of ConvertibleTypes,
            list[...] of one of them or any callable taking a string.

    Returns:
        TypeConverter | None: The matching TypeConverter or None if type is not
            convertible.
    """
    if (origin := get_origin(type_hint)) and origin is list:

        if (list_args := get_args(type_hint)) and len(list_args) == 1:
            # list has exactly one type hint -> get item converter
            return list_converter(item_converter=_type_hint_to_converter(list_args[0]))

        return DEFAULT_LIST_CONVERTER

    if type_hint is bool:
        return DEFAULT_BOOL_CONVERTER
    if type_hint in {int, float, complex}:
        return numeric_converter(numeric_type=type_hint)
    if type_hint is list:
        return DEFAULT_LIST_CONVERTER
    if type_hint is str:
        return DEFAULT_STRING_CONVERTER
    if callable(type_hint):
        return type_hint

    return None


def convert_strict(value: str, type_hint: Any) -> Any:
    """Convert value according to type_hint and fail loudly.

    Args:
        value (str): The raw property value.
        type_hint (Any): See _type_hint_to_converter.

    Raises:
        ValueError: If the value could not be converted.

    Returns:
        Any: The converted value.
    """
    type_converter = _type_hint_to_converter(type_hint)
    if type_converter is None:
        raise TypeError(f"'{type_hint}' is not a convertible type.")
    if type_hint is str:
        return type_converter(value)

    try:
        result = type_converter(value)
    except (WrongType, TypeError, ArithmeticError) as e:
        raise ValueError(f"Cannot convert '{value}' to {_type_name(type_hint)}") from e

    if not _matches(result, type_hint):
        raise ValueError(f"Cannot convert '{value}' to {_type_name(type_hint)}")
    return result


def _matches(result: Any, type_hint: Any) -> bool:
    """Whether result is an instance of what type_hint asks for."""
    expected = get_origin(type_hint) or type_hint
    if not isinstance(expected, type):
        # arbitrary callables are trusted
        return True
    if not isinstance(result, expected):
        return False
    if expected is not bool and isinstance(result, bool):
        return False
    if expected is list and (item_hints := get_args(type_hint)):
        return all(_matches(item, item_hints[0]) for item in result)
    return True


def _type_name(type_hint: Any) -> str:
    return getattr(type_hint, "__name__", str(type_hint))


def value_to_string(value: Any) -> str:
    """Render an arbitrary object as a property value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return "" if value is None else str(value)


# array notation: {a, b, "c, d"}

_ARRAY_SPECIAL_CHARS = frozenset(',{}" ')


def parse_array(
    value: str, item_type: Any = str, max_elements: int = 10000
) -> list[Any]:
    """Split an array value like '{a, "b, c", d}' into its items.

    Args:
        value (str): The raw property value.
        item_type (Any, optional): Type every item is converted to (strictly,
            see convert_strict). Defaults to str.
        max_elements (int, optional): Maximum number of items, 0 for unlimited.
            Defaults to 10000.

    Raises:
        ValueError: If value is not in array notation, a quote is unterminated,
            the item limit is exceeded or an item can't be converted.
    """
    value = value.strip()
    if len(value) < 2 or value[0] != "{" or value[-1] != "}":
        raise ValueError("Invalid array format")
    body = value[1:-1]

    raw_items: list[str] = []
    start, in_quotes = 0, False
    for i, char in enumerate(body):
        if char == '"' and (i == 0 or body[i - 1] != "\\"):
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            raw_items.append(body[start:i])
            start = i + 1
    if in_quotes:
        raise ValueError("Unterminated quote in array")
    raw_items.append(body[start:])

    items: list[Any] = []
    for raw in raw_items:
        raw = raw.strip()
        if not raw:
            continue
        if max_elements and len(items) >= max_elements:
            raise ValueError(
                f"Array exceeds maximum allowed size ({max_elements} elements)"
            )
        if len(raw) >= 2 and raw[0] == '"' and raw[-1] == '"':
            raw = raw[1:-1].replace('\\"', '"')
        items.append(convert_strict(raw, item_type))
    return items


def format_array(values: Iterable[Any]) -> str:
    """Render values in array notation, quoting items that need it."""
    rendered = []
    for value in values:
        text = value_to_string(value)
        if _ARRAY_SPECIAL_CHARS.intersection(text):
            text = '"' + text.replace('"', '\\"') + '"'
        rendered.append(text)
    return "{" + ", ".join(rendered) + "}"


# default converters
DEFAULT_BOOL_CONVERTER = bool_converter()
"""Bool converter with default conversion parameters."""
DEFAULT_NUMERIC_CONVERTER = numeric_converter()
"""Numeric converter with default conversion parameters."""
DEFAULT_LIST_CONVERTER = list_converter()
"""List converter with default conversion parameters."""
