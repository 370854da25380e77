"""
Collectors for Stream.collect().

A collector is any callable that takes an iterable and returns a result,
so builtins such as `list`, `set` or `collections.Counter` work too. The
factories here cover the common reductions.
"""

from functools import reduce as builtin_reduce
from typing import Any, Callable, Dict, Iterable, List, Set


def to_list() -> Callable[[Iterable[Any]], List[Any]]:
    return list


def to_set() -> Callable[[Iterable[Any]], Set[Any]]:
    return set


def joining(delimiter: str = "", prefix: str = "", suffix: str = "") -> Callable[[Iterable[Any]], str]:
    """Concatenate str() of each element in encounter order."""
    def collect(items):
        return prefix + delimiter.join(str(item) for item in items) + suffix
    return collect


def counting() -> Callable[[Iterable[Any]], int]:
    def collect(items):
        total = 0
        for _ in items:
            total += 1
        return total
    return collect


def summing(fn: Callable[[Any], Any] = None) -> Callable[[Iterable[Any]], Any]:
    """Sum of fn(element), or of the elements themselves; 0 when empty."""
    def collect(items):
        total = 0
        for item in items:
            total += fn(item) if fn is not None else item
        return total
    return collect


def averaging(fn: Callable[[Any], Any] = None) -> Callable[[Iterable[Any]], float]:
    """Arithmetic mean of fn(element); 0.0 when empty."""
    def collect(items):
        total = 0
        count = 0
        for item in items:
            total += fn(item) if fn is not None else item
            count += 1
        return total / count if count else 0.0
    return collect


def reducing(identity: Any, fn: Callable[[Any, Any], Any]) -> Callable[[Iterable[Any]], Any]:
    """Left fold starting at identity."""
    def collect(items):
        return builtin_reduce(fn, items, identity)
    return collect


def grouping_by(key_fn: Callable[[Any], Any],
                downstream: Callable[[Iterable[Any]], Any] = None) -> Callable[[Iterable[Any]], Dict[Any, Any]]:
    """Group elements by key_fn, keeping first-seen key order.

    Each group is a list, or downstream(list) when a downstream collector is given.
    """
    def collect(items):
        groups = {}
        for item in items:
            key = key_fn(item)
            if key not in groups:
                groups[key] = []
            groups[key].append(item)
        if downstream is not None:
            return {key: downstream(values) for key, values in groups.items()}
        return groups
    return collect
