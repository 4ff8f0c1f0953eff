"""
Numeric ranges with independently inclusive/exclusive endpoints, and an ordered
map keyed by non-overlapping ranges.

RangeMap keeps its ranges sorted by lower bound so that a point lookup is a
binary search followed by one containment check, and an insertion only has to
compare the new range with its two neighbours to detect an overlap.
"""
import math
from bisect import bisect_left, bisect_right

import numpy as np


class SchemaError(ValueError):
    """
    Raised when an equation description does not follow the expected schema.

    Attributes
    ----------
    index : int or None
        Index of the offending piece in the "pieces" list, if any
    field : str or None
        Name of the offending field, if any
    """

    def __init__(self, message, index=None, field=None):
        self.index = index
        self.field = field
        if index is not None:
            message = f"Piece at index {index}: {message}"
        super().__init__(message)


class OverlapError(SchemaError):
    """Raised when a range intersects a range that is already registered"""


class NumericRange:
    """
    An interval of the real line, e.g. [0, 2) or (1, 5].

    A range with lower == upper is a single point when both ends are inclusive
    and empty otherwise.
    """

    __slots__ = ("lower", "lower_inclusive", "upper", "upper_inclusive")

    def __init__(self, lower, upper, lower_inclusive=True, upper_inclusive=True):
        lower = float(lower)
        upper = float(upper)
        if math.isnan(lower) or math.isnan(upper):
            raise ValueError("Range bounds cannot be NaN")
        object.__setattr__(self, "lower", lower)
        object.__setattr__(self, "upper", upper)
        object.__setattr__(self, "lower_inclusive", bool(lower_inclusive))
        object.__setattr__(self, "upper_inclusive", bool(upper_inclusive))

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def sort_key(self):
        # An inclusive lower bound sorts before an exclusive one at the same value
        return (self.lower, not self.lower_inclusive)

    def is_empty(self):
        if self.lower > self.upper:
            return True
        if self.lower == self.upper:
            return not (self.lower_inclusive and self.upper_inclusive)
        return False

    def contains(self, x):
        """Check whether the point x lies in this range"""
        above_lower = self.lower < x or (self.lower_inclusive and x == self.lower)
        below_upper = x < self.upper or (self.upper_inclusive and x == self.upper)
        return above_lower and below_upper

    def _ends_before(self, other):
        """True if every point of self is smaller than every point of other"""
        if self.upper < other.lower:
            return True
        if self.upper == other.lower:
            return not (self.upper_inclusive and other.lower_inclusive)
        return False

    def overlaps(self, other):
        """Check whether some real number lies in both ranges"""
        if self.is_empty() or other.is_empty():
            return False
        return not (self._ends_before(other) or other._ends_before(self))

    def __contains__(self, x):
        return self.contains(x)

    def __eq__(self, other):
        if not isinstance(other, NumericRange):
            return NotImplemented
        return (self.lower, self.lower_inclusive, self.upper, self.upper_inclusive) == \
            (other.lower, other.lower_inclusive, other.upper, other.upper_inclusive)

    def __lt__(self, other):
        if not isinstance(other, NumericRange):
            return NotImplemented
        return self.sort_key < other.sort_key

    def __hash__(self):
        return hash((self.lower, self.lower_inclusive, self.upper, self.upper_inclusive))

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __str__(self):
        left = "[" if self.lower_inclusive else "("
        right = "]" if self.upper_inclusive else ")"
        return f"{left}{self.lower:g}, {self.upper:g}{right}"

    def __repr__(self):
        return (f"NumericRange({self.lower!r}, {self.upper!r}, "
                f"lower_inclusive={self.lower_inclusive}, upper_inclusive={self.upper_inclusive})")


class RangeMap:
    """
    Ordered mapping from pairwise non-overlapping NumericRanges to payloads.

    Ranges are stored sorted by lower bound. Since stored ranges never
    overlap, they are sorted by upper bound as well, so the only range that
    can contain a point is the last one starting at or before it.
    """

    def __init__(self, items=None):
        self._keys = []  # sort keys, parallel to _ranges
        self._ranges = []
        self._values = []
        if items:
            for rng, value in items:
                self.insert(rng, value)

    def insert(self, rng, value):
        """
        Associate `value` with `rng`.

        Raises
        ------
        ValueError
            If the range is empty
        OverlapError
            If the range shares a point with an already registered range
        """
        if rng.is_empty():
            raise ValueError(f"Cannot register empty range {rng}")

        idx = bisect_left(self._keys, rng.sort_key)
        for neighbour in (idx - 1, idx):
            if 0 <= neighbour < len(self._ranges) and self._ranges[neighbour].overlaps(rng):
                raise OverlapError(f"Range {rng} overlaps registered range {self._ranges[neighbour]}")

        self._keys.insert(idx, rng.sort_key)
        self._ranges.insert(idx, rng)
        self._values.insert(idx, value)

    def _index_of(self, x):
        if math.isnan(x):
            return -1
        # Last range whose lower end admits x
        idx = bisect_right(self._keys, (x, False)) - 1
        if idx >= 0 and self._ranges[idx].contains(x):
            return idx
        return -1

    def find(self, x):
        """Return the payload of the range containing x, or None"""
        idx = self._index_of(float(x))
        return self._values[idx] if idx >= 0 else None

    def find_range(self, x):
        """Return the (range, payload) pair containing x, or None"""
        idx = self._index_of(float(x))
        return (self._ranges[idx], self._values[idx]) if idx >= 0 else None

    def find_many(self, points):
        """
        Vectorized lookup.

        Parameters
        ----------
        points : array_like
            Points to look up

        Returns
        -------
        numpy.ndarray
            Index (in range order) of the range containing each point, -1 for
            points outside every range
        """
        x = np.asarray(points, dtype=float)
        result = np.full(x.shape, -1, dtype=int)
        if not self._ranges:
            return result

        lowers = np.array([r.lower for r in self._ranges])
        uppers = np.array([r.upper for r in self._ranges])
        lower_inc = np.array([r.lower_inclusive for r in self._ranges])
        upper_inc = np.array([r.upper_inclusive for r in self._ranges])

        # A point equal to an exclusive lower bound belongs to the previous
        # range at most, so both the last range starting at or before x and
        # its predecessor are candidates.
        last = np.searchsorted(lowers, x, side='right') - 1
        for candidate in (last, last - 1):
            valid = (candidate >= 0) & (result < 0)
            idx = np.where(valid, candidate, 0)
            inside = ((lowers[idx] < x) | (lower_inc[idx] & (lowers[idx] == x))) & \
                     ((x < uppers[idx]) | (upper_inc[idx] & (uppers[idx] == x)))
            result = np.where(valid & inside, candidate, result)
        return result

    def bounds(self):
        """Smallest lower bound and largest upper bound, or None when empty"""
        if not self._ranges:
            return None
        return self._ranges[0].lower, self._ranges[-1].upper

    def ranges(self):
        return list(self._ranges)

    def values(self):
        return list(self._values)

    def items(self):
        return list(zip(self._ranges, self._values))

    def copy(self):
        """Independent copy; payloads are shared and must be immutable"""
        other = RangeMap()
        other._keys = list(self._keys)
        other._ranges = list(self._ranges)
        other._values = list(self._values)
        return other

    def __contains__(self, x):
        return self._index_of(float(x)) >= 0

    def __len__(self):
        return len(self._ranges)

    def __iter__(self):
        return iter(self._ranges)

    def __eq__(self, other):
        if not isinstance(other, RangeMap):
            return NotImplemented
        return self._ranges == other._ranges and self._values == other._values

    def __repr__(self):
        return f"RangeMap({self.items()!r})"
