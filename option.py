"""
Option: a container holding either one value or nothing.

Returned by stream operations that may have no answer (find_first,
find_any, reduce without identity, max, min). Reading the value of an
empty Option raises EmptyResultError; callers either check presence or
supply a fallback.
"""

from typing import Any, Callable, Generic, TypeVar

from utils import EmptyResultError

T = TypeVar("T")
U = TypeVar("U")

_ABSENT = object()


class Option(Generic[T]):
    """Zero-or-one value container."""

    __slots__ = ("_value",)

    def __init__(self, value: Any = _ABSENT):
        self._value = value

    @classmethod
    def of(cls, value: T) -> "Option[T]":
        """Present option. None is a legal value here."""
        return cls(value)

    @classmethod
    def of_nullable(cls, value: T) -> "Option[T]":
        """Present option, or empty when value is None."""
        return cls.empty() if value is None else cls(value)

    @classmethod
    def empty(cls) -> "Option[T]":
        return cls()

    # --------- presence ----------
    def is_present(self) -> bool:
        return self._value is not _ABSENT

    def is_empty(self) -> bool:
        return self._value is _ABSENT

    def __bool__(self):
        return self.is_present()

    # --------- access ----------
    def get(self) -> T:
        """Return the value or raise EmptyResultError."""
        if self._value is _ABSENT:
            raise EmptyResultError("No value present")
        return self._value

    def or_else(self, default: T) -> T:
        return self._value if self.is_present() else default

    def or_else_get(self, supplier: Callable[[], T]) -> T:
        return self._value if self.is_present() else supplier()

    def or_else_raise(self, exception_factory: Callable[[], BaseException]) -> T:
        if self.is_present():
            return self._value
        raise exception_factory()

    def if_present(self, action: Callable[[T], Any]) -> None:
        if self.is_present():
            action(self._value)

    def if_present_or_else(self, action: Callable[[T], Any], empty_action: Callable[[], Any]) -> None:
        if self.is_present():
            action(self._value)
        else:
            empty_action()

    # --------- transformation ----------
    def map(self, fn: Callable[[T], U]) -> "Option[U]":
        """Apply fn to a present value; a None result gives an empty option."""
        if self.is_empty():
            return Option.empty()
        return Option.of_nullable(fn(self._value))

    def flat_map(self, fn: Callable[[T], "Option[U]"]) -> "Option[U]":
        if self.is_empty():
            return Option.empty()
        return fn(self._value)

    def filter(self, predicate: Callable[[T], bool]) -> "Option[T]":
        if self.is_present() and predicate(self._value):
            return self
        return Option.empty()

    # --------- dunder ----------
    def __reduce__(self):
        # the absent sentinel is per-process, so pickle through the constructors
        if self.is_empty():
            return (Option.empty, ())
        return (Option.of, (self._value,))

    def __eq__(self, other):
        if not isinstance(other, Option):
            return NotImplemented
        return self._value is other._value or self._value == other._value

    def __hash__(self):
        return hash(None) if self.is_empty() else hash(self._value)

    def __repr__(self):
        if self.is_empty():
            return "Option.empty()"
        return f"Option.of({self._value!r})"
