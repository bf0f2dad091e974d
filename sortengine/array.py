from .errors import IndexOutOfRange


class WorkingArray:
    """
    The single mutable buffer an algorithm sorts.

    Length is fixed at construction. swap() and overwrite() are the only
    mutators; callers pair each one with the matching Swap/Overwrite event
    in the same step.
    """
    __slots__ = ('_items',)

    def __init__(self, values=()):
        self._items = list(values)

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(tuple(self._items))

    def __repr__(self):
        return f"WorkingArray({self._items!r})"

    def _check(self, i):
        if not isinstance(i, int) or not 0 <= i < len(self._items):
            raise IndexOutOfRange(i, len(self._items))

    def read(self, i: int) -> int:
        self._check(i)
        return self._items[i]

    def swap(self, i: int, j: int):
        self._check(i); self._check(j)
        self._items[i], self._items[j] = self._items[j], self._items[i]

    def overwrite(self, i: int, value: int):
        self._check(i)
        self._items[i] = value

    def snapshot(self) -> tuple:
        """Immutable copy for observers and restore points."""
        return tuple(self._items)
