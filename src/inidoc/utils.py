from typing import Callable, Iterable, Iterator, Protocol, overload


def copy_doc[
    **P, T
](doc_source: Callable[P, T], annotations: bool = False) -> Callable[
    [Callable[P, T]], Callable[P, T]
]:
    """Decorator to copy the docstring of doc_source to another.
    Inspired by Trevor (stackoverflow.com/users/13905088/trevor)
    from: stackoverflow.com/questions/68901049/
        copying-the-docstring-of-function-onto-another-function-by-name

    Args:
        doc_source (Callable): The source function to copy the docstring from.
        annotations (bool, optional): Whether to also copy annotations. Defaults to False.

    Returns:
        Callable: The decorated function.

    """

    def wrapped(doc_target: Callable[P, T]) -> Callable[P, T]:
        doc_target.__doc__ = doc_source.__doc__
        if annotations:
            doc_target.__annotations__ = doc_source.__annotations__
        return doc_target

    return wrapped


def normalize_name(name: str) -> str:
    """Key used for case-insensitive name comparison (ordinal, no locale)."""
    return name.lower()


### Ordered list with a case-insensitive name index


class _Named(Protocol):
    @property
    def name(self) -> str: ...


class NamedList[T: _Named]:
    """Ordered sequence of named items plus a derived name -> position index.

    The list itself does not enforce unique names (a parse pass may append
    duplicates that are resolved afterwards). Structural changes mark the index
    dirty and it is rebuilt once on the next lookup.
    """

    def __init__(self, items: Iterable[T] = ()) -> None:
        self._items: list[T | None] = list(items)
        self._holes = self._items.count(None)
        self._index: dict[str, int] = {}
        self._dirty = True

    def _lookup(self) -> dict[str, int]:
        if self._dirty:
            self._index = {}
            for position, item in enumerate(self._items):
                if item is not None:
                    # first occurrence wins while duplicates are still present
                    self._index.setdefault(normalize_name(item.name), position)
            self._dirty = False
        return self._index

    def __len__(self) -> int:
        return len(self._items) - self._holes

    def __iter__(self) -> Iterator[T]:
        return (item for item in self._items if item is not None)

    def __bool__(self) -> bool:
        return len(self) > 0

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_name(name) in self._lookup()

    @overload
    def __getitem__(self, index: int) -> T: ...
    @overload
    def __getitem__(self, index: slice) -> list[T]: ...
    def __getitem__(self, index: int | slice) -> T | list[T]:
        if self._holes:
            return list(self)[index]
        return self._items[index]  # type: ignore[return-value]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self)!r})"

    def index_of(self, name: str) -> int | None:
        """Position of the item called name (case-insensitive) or None."""
        position = self._lookup().get(normalize_name(name))
        if position is None or not self._holes:
            return position
        # positions in the index count placeholders, callers count items
        return sum(1 for item in self._items[:position] if item is not None)

    def get(self, name: str) -> T | None:
        position = self._lookup().get(normalize_name(name))
        return None if position is None else self._items[position]

    def append(self, item: T | None) -> None:
        self._items.append(item)
        if item is None:
            self._holes += 1
        elif not self._dirty:
            self._index.setdefault(normalize_name(item.name), len(self._items) - 1)

    def insert(self, index: int, item: T) -> None:
        self.purge()
        self._items.insert(index, item)
        self._dirty = True

    def pop(self, index: int) -> T:
        self.purge()
        item = self._items.pop(index)
        self._dirty = True
        assert item is not None
        return item

    def remove_name(self, name: str) -> T | None:
        """Remove the item called name and return it (None if missing)."""
        position = self._lookup().get(normalize_name(name))
        if position is None:
            return None
        item = self._items.pop(position)
        self._dirty = True
        return item

    def replace(self, items: Iterable[T]) -> None:
        """Replace the whole content (bulk structural change)."""
        self._items = list(items)
        self._holes = self._items.count(None)
        self._dirty = True

    def purge(self) -> None:
        """Drop placeholder slots left by aborted constructions."""
        if self._holes:
            self._items = [item for item in self._items if item is not None]
            self._holes = 0
            self._dirty = True

    def clear(self) -> None:
        self._items.clear()
        self._holes = 0
        self._index.clear()
        self._dirty = False

    def sort(self, key: Callable[[T], object]) -> None:
        self.purge()
        self._items.sort(key=key)  # type: ignore[arg-type]
        self._dirty = True
