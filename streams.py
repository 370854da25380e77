"""
Stream: a lazy, single-pass, chainable sequence pipeline.

Intermediate stages (filter, map, flat_map, peek, distinct, limit, skip,
sorted, batch) are recorded and only applied when a terminal operation
pulls elements through them. Each stream is used exactly once: chaining
a stage or running a terminal operation consumes it.

Streams built with iterate() or generate() are unbounded. Every terminal
except find_first(), find_any() and plain iteration refuses to run on
them until a limit() stage has been added.
"""

import itertools
import logging
import operator
from functools import reduce as builtin_reduce

from models import EvaluationMode, ParallelSettings, PipelineInfo, SourceKind, StageInfo
from option import Option
from utils import PartitionPool, StreamConsumedError, UnboundedStreamError, partition

logger = logging.getLogger(__name__)

_MISSING = object()

STATEFUL_STAGES = frozenset({"distinct", "limit", "skip", "sorted", "batch"})


# --------- sources ----------
def _iterate(seed, next_fn):
    value = seed
    while True:
        yield value
        value = next_fn(value)


def _generate(supplier):
    while True:
        yield supplier()


def _source_kind_of(source):
    if isinstance(source, range):
        return SourceKind.RANGE
    if iter(source) is source:
        return SourceKind.ITERATOR
    return SourceKind.COLLECTION


# --------- stages ----------
def _peek(gen, action):
    for x in gen:
        action(x)
        yield x


def _flat_map(gen, fn):
    for x in gen:
        sub = fn(x)
        if isinstance(sub, Stream) and not sub._bounded:
            raise UnboundedStreamError("flat_map() produced an unbounded sub-stream; add limit() to it first")
        yield from sub


def _distinct(gen):
    seen = set()
    unhashable = []
    for x in gen:
        try:
            if x in seen:
                continue
            seen.add(x)
        except TypeError:
            if x in unhashable:
                continue
            unhashable.append(x)
        yield x


def _sorted(gen, key, reverse):
    yield from sorted(gen, key=key, reverse=reverse)


def _batch(gen, size):
    bucket = []
    for x in gen:
        bucket.append(x)
        if len(bucket) == size:
            yield tuple(bucket)
            bucket = []
    if bucket:
        yield tuple(bucket)


def _build_pipeline(it, ops):
    """Wrap the iterator in one lazy generator per stage."""
    for op, arg in ops:
        if op == "filter":
            it = filter(arg, it)
        elif op == "map":
            it = map(arg, it)
        elif op == "flat_map":
            it = _flat_map(it, arg)
        elif op == "peek":
            it = _peek(it, arg)
        elif op == "distinct":
            it = _distinct(it)
        elif op == "limit":
            # islice never pulls the (n+1)-th element from upstream
            it = itertools.islice(it, arg)
        elif op == "skip":
            it = itertools.islice(it, arg, None)
        elif op == "sorted":
            key, reverse = arg
            it = _sorted(it, key, reverse)
        elif op == "batch":
            it = _batch(it, arg)
        else:
            raise ValueError(f"Unknown op: {op}")
    return it


# --------- terminal partials (module level so process pools can pickle them) ----------
def _fold(it, fn):
    acc = next(it, _MISSING)
    if acc is _MISSING:
        return Option.empty()
    for x in it:
        acc = fn(acc, x)
    return Option.of(acc)


def _extreme(it, pick, key):
    if key is None:
        value = pick(it, default=_MISSING)
    else:
        value = pick(it, key=key, default=_MISSING)
    return Option.empty() if value is _MISSING else Option.of(value)


def _first(it):
    value = next(it, _MISSING)
    return Option.empty() if value is _MISSING else Option.of(value)


def _count(it):
    total = 0
    for _ in it:
        total += 1
    return total


def _for_each(it, action):
    for x in it:
        action(x)


_PARTIALS = {
    "list": list,
    "set": set,
    "count": _count,
    "fold": _fold,
    "reduce": lambda it, fn, identity: builtin_reduce(fn, it, identity),
    "max": lambda it, key: _extreme(it, max, key),
    "min": lambda it, key: _extreme(it, min, key),
    "first": _first,
    "any_match": lambda it, predicate: any(predicate(x) for x in it),
    "all_match": lambda it, predicate: all(predicate(x) for x in it),
    "none_match": lambda it, predicate: not any(predicate(x) for x in it),
    "for_each": _for_each,
}


def _evaluate_partition(chunk, ops, terminal, args):
    """Run the stateless stage suffix and one terminal partial over a single partition."""
    return _PARTIALS[terminal](_build_pipeline(iter(chunk), ops), *args)


class Stream:
    """
    A lazy, single-use pipeline over an ordered source.
    Stages are stored and applied only when a terminal operation runs.
    """

    def __init__(self, source=(), ops=None, bounded=True, source_kind=None, parallel_settings=None):
        self._source = source
        self._ops = ops or []          # sequence of ("op_name", callable/arg)
        self._bounded = bounded
        self._source_kind = source_kind or _source_kind_of(source)
        self._parallel = parallel_settings
        self._consumed = False

    # --------- construction ----------
    @classmethod
    def from_collection(cls, items, bounded=True):
        """Stream over any iterable, in its iteration order.

        Pass bounded=False for an endless iterator so terminals demand a limit().
        """
        return cls(items, bounded=bounded)

    @classmethod
    def of(cls, *values):
        return cls(values)

    @classmethod
    def empty(cls):
        return cls(())

    @classmethod
    def range(cls, start, end):
        """Integers start <= i < end."""
        return cls(range(start, end))

    @classmethod
    def range_closed(cls, start, end):
        """Integers start <= i <= end."""
        return cls(range(start, end + 1))

    @classmethod
    def iterate(cls, seed, next_fn):
        """Unbounded stream seed, f(seed), f(f(seed)), ..."""
        return cls(_iterate(seed, next_fn), bounded=False, source_kind=SourceKind.ITERATE)

    @classmethod
    def generate(cls, supplier):
        """Unbounded stream of supplier() results."""
        return cls(_generate(supplier), bounded=False, source_kind=SourceKind.GENERATE)

    # --------- chainable operators (lazy) ----------
    def filter(self, predicate):
        return self._with_op(("filter", predicate))

    def map(self, fn):
        return self._with_op(("map", fn))

    def flat_map(self, fn):
        """fn returns an iterable (or a Stream) per element; results are concatenated."""
        return self._with_op(("flat_map", fn))

    def peek(self, action):
        """Call action on each element as it passes; for diagnostics only."""
        return self._with_op(("peek", action))

    def distinct(self):
        return self._with_op(("distinct", None))

    def limit(self, n):
        n = int(n)
        if n < 0:
            raise ValueError(f"limit must be >= 0, got {n}")
        return self._with_op(("limit", n), bounded=True)

    def skip(self, n):
        n = int(n)
        if n < 0:
            raise ValueError(f"skip must be >= 0, got {n}")
        return self._with_op(("skip", n))

    def sorted(self, key=None, reverse=False):
        """Buffer the whole upstream and emit it sorted."""
        if not self._bounded:
            raise UnboundedStreamError("sorted() would buffer an unbounded stream forever; add limit() first")
        return self._with_op(("sorted", (key, reverse)))

    def batch(self, size):
        """Group elements into tuples of `size`; the last tuple may be shorter."""
        size = int(size)
        if size < 1:
            raise ValueError(f"batch size must be >= 1, got {size}")
        return self._with_op(("batch", size))

    def parallel(self, settings=None, **overrides):
        """Evaluate the terminal operation on a worker pool."""
        if settings is None:
            settings = ParallelSettings(**overrides)
        elif overrides:
            settings = ParallelSettings(**{**settings.model_dump(exclude_unset=True), **overrides})
        return self._derive(self._ops, self._bounded, settings)

    def sequential(self):
        return self._derive(self._ops, self._bounded, None)

    @property
    def is_parallel(self):
        return self._parallel is not None

    # --------- terminal operations ----------
    def count(self):
        """Number of elements that survive all stages."""
        self._consume("count")
        if self.is_parallel:
            return sum(self._run_parallel("count"))
        if not self._ops and isinstance(self._source, range):
            return len(self._source)
        return _count(self._elements())

    def reduce(self, fn, identity=_MISSING):
        """Left fold.

        With identity, returns the folded value (identity for an empty stream).
        Without, returns an Option: empty for an empty stream, otherwise the
        fold seeded with the first element. Parallel evaluation requires fn to
        be associative and identity to be its identity element.
        """
        self._consume("reduce")
        if identity is _MISSING:
            if self.is_parallel:
                return _fold(_present(self._run_parallel("fold", fn)), fn)
            return _fold(self._elements(), fn)
        if self.is_parallel:
            return builtin_reduce(fn, self._run_parallel("reduce", fn, identity), identity)
        return builtin_reduce(fn, self._elements(), identity)

    def sum(self, start=0):
        """Sum of the elements; start for an empty stream."""
        self._consume("sum")
        if self.is_parallel:
            partial = _fold(_present(self._run_parallel("fold", operator.add)), operator.add)
            return start + partial.get() if partial.is_present() else start
        total = start
        for item in self._elements():
            total += item
        return total

    def max(self, key=None):
        self._consume("max")
        if self.is_parallel:
            return _extreme(_present(self._run_parallel("max", key)), max, key)
        return _extreme(self._elements(), max, key)

    def min(self, key=None):
        self._consume("min")
        if self.is_parallel:
            return _extreme(_present(self._run_parallel("min", key)), min, key)
        return _extreme(self._elements(), min, key)

    def find_first(self):
        """Option of the first element in encounter order."""
        self._consume("find_first", requires_bound=False)
        if self.is_parallel:
            return next((o for o in self._run_parallel("first") if o.is_present()), Option.empty())
        return _first(self._elements())

    def find_any(self):
        """Option of some element. Parallel: whichever partition answers first."""
        self._consume("find_any", requires_bound=False)
        if self.is_parallel:
            found = self._run_parallel_decisive("first", lambda o: o.is_present())
            return found if found is not None else Option.empty()
        return _first(self._elements())

    def any_match(self, predicate):
        self._consume("any_match")
        if self.is_parallel:
            return self._run_parallel_decisive("any_match", lambda r: r, predicate) is not None
        return any(predicate(x) for x in self._elements())

    def all_match(self, predicate):
        self._consume("all_match")
        if self.is_parallel:
            return self._run_parallel_decisive("all_match", lambda r: not r, predicate) is None
        return all(predicate(x) for x in self._elements())

    def none_match(self, predicate):
        self._consume("none_match")
        if self.is_parallel:
            return self._run_parallel_decisive("none_match", lambda r: not r, predicate) is None
        return not any(predicate(x) for x in self._elements())

    def to_list(self):
        self._consume("to_list")
        if self.is_parallel:
            return list(itertools.chain.from_iterable(self._run_parallel("list")))
        return list(self._elements())

    def to_set(self):
        self._consume("to_set")
        if self.is_parallel:
            return set().union(*self._run_parallel("set"))
        return set(self._elements())

    def distinct_count(self):
        return len(self.to_set())

    def join(self, delimiter="", prefix="", suffix=""):
        """Concatenate str() of each element in encounter order."""
        self._consume("join")
        if self.is_parallel:
            items = itertools.chain.from_iterable(self._run_parallel("list"))
        else:
            items = self._elements()
        return prefix + delimiter.join(str(item) for item in items) + suffix

    def for_each(self, action):
        """Call action once per element. Encounter order only when sequential."""
        self._consume("for_each")
        if self.is_parallel:
            self._run_parallel("for_each", action)
            return
        _for_each(self._elements(), action)

    def collect(self, collector):
        """Hand the elements to collector, any callable taking an iterable."""
        self._consume("collect")
        if self.is_parallel:
            return collector(itertools.chain.from_iterable(self._run_parallel("list")))
        return collector(self._elements())

    # --------- iterator protocol ----------
    def __iter__(self):
        # always sequential; iteration is caller-driven so unbounded streams are allowed
        self._link()
        logger.debug(f"Iterating over {len(self._ops)} stages")
        return self._elements()

    # --------- inspection ----------
    def describe(self):
        """Snapshot of the pipeline; does not consume the stream."""
        stages = [
            StageInfo(
                name=op,
                stateful=op in STATEFUL_STAGES,
                argument=repr(arg) if isinstance(arg, int) else None,
            )
            for op, arg in self._ops
        ]
        return PipelineInfo(
            source=self._source_kind,
            bounded=self._bounded,
            mode=self._mode,
            consumed=self._consumed,
            stages=stages,
        )

    def __repr__(self):
        stages = ", ".join(op for op, _ in self._ops)
        return f"Stream(source={self._source_kind.value}, stages=[{stages}], mode={self._mode.value})"

    # --------- helpers ----------
    @property
    def _mode(self):
        return EvaluationMode.PARALLEL if self.is_parallel else EvaluationMode.SEQUENTIAL

    def _link(self):
        if self._consumed:
            raise StreamConsumedError("stream has already been operated upon or consumed")
        self._consumed = True

    def _derive(self, ops, bounded, parallel_settings):
        self._link()
        return Stream(
            self._source,
            ops,
            bounded=bounded,
            source_kind=self._source_kind,
            parallel_settings=parallel_settings,
        )

    def _with_op(self, op_tuple, bounded=None):
        return self._derive(
            self._ops + [op_tuple],
            self._bounded if bounded is None else bounded,
            self._parallel,
        )

    def _consume(self, terminal, requires_bound=True):
        # a refused terminal leaves the stream usable so limit() can still be added
        if not self._consumed and not self._bounded and (requires_bound or self.is_parallel):
            raise UnboundedStreamError(
                f"{terminal}() on an unbounded stream would never finish; add limit() first"
            )
        self._link()
        logger.debug(f"Evaluating {terminal}() over {len(self._ops)} stages ({self._mode.value})")

    def _elements(self):
        return _build_pipeline(iter(self._source), self._ops)

    def _split(self):
        """Materialize the source through the last stateful stage and partition it.

        Returns the partitions and the stateless stages left to run per partition.
        """
        cut = 0
        for index, (op, _) in enumerate(self._ops):
            if op in STATEFUL_STAGES:
                cut = index + 1
        prefix, suffix = self._ops[:cut], self._ops[cut:]
        if not prefix and isinstance(self._source, (list, tuple, range)):
            items = self._source
        else:
            items = list(_build_pipeline(iter(self._source), prefix))
        return partition(items, self._parallel.partition_count), suffix

    def _run_parallel(self, terminal, *args):
        chunks, suffix = self._split()
        return PartitionPool(self._parallel).map_ordered(_evaluate_partition, chunks, suffix, terminal, args)

    def _run_parallel_decisive(self, terminal, is_decisive, *args):
        chunks, suffix = self._split()
        return PartitionPool(self._parallel).first_decisive(
            _evaluate_partition, chunks, is_decisive, suffix, terminal, args
        )


def _present(options):
    """Iterator over the values of the present options."""
    return (option.get() for option in options if option.is_present())
