import json
import math
from collections.abc import Mapping

import numpy as np
from pint import Quantity

import pyJSONEq
from pyJSONEq import globals as g
from pyJSONEq.equations.polynomial import Monomial, PolynomialEquation, terms_from_lists
from pyJSONEq.json_utils import load_document, validate_input_with_schema, validate_piece
from pyJSONEq.numeric_range import NumericRange, OverlapError, RangeMap, SchemaError
from pyJSONEq.units import parse_units, to_magnitude, with_units


class JSONEquation:
	"""
	A system of piecewise rational-polynomial equations of a single variable,
	built from a JSON document of the form::

		{
		  "pieces": [
		    {
		      "lower_bound": 0, "upper_bound": 2,
		      "lb_inclusive": true, "ub_inclusive": false,
		      "numerator":   {"powers": [0, 1], "coefficients": [2, 1]},
		      "denominator": {"powers": [0],    "coefficients": [1]}
		    }
		  ]
		}

	Pieces are indexed by their range in a RangeMap, so evaluating at x is a
	binary search for the single piece whose range contains x.

	An equation is never modified after it has been built. Copies do not share
	their piece map with the original.
	"""

	def __init__(self, eq_in=None):
		"""
		Parameters
		----------
		eq_in : dict, optional
			Parsed JSON document. When omitted the equation has no pieces and
			every evaluation returns None.

		Raises
		------
		SchemaError
			If the document does not follow the schema or two pieces overlap
		"""
		self._pieces = RangeMap()
		self._x_units_str = None
		self._y_units_str = None
		self.x_units = pyJSONEq.ureg.dimensionless
		self.y_units = pyJSONEq.ureg.dimensionless

		if eq_in is not None:
			try:
				self._build_equation(eq_in)
			except SchemaError:
				pyJSONEq.log_exception("Error building JSONEquation")
				raise

	# -- alternate constructors ------------------------------------------

	@classmethod
	def from_json(cls, eq_in):
		"""Build from an already parsed JSON value"""
		return cls(eq_in)

	@classmethod
	def from_string(cls, text):
		"""Build from JSON text"""
		return cls(json.loads(text))

	@classmethod
	def from_stream(cls, stream):
		"""Build from a readable text stream holding JSON"""
		return cls(json.load(stream))

	@classmethod
	def from_file(cls, filename, schema_file=None):
		"""
		Build from a JSON or YAML file.

		Parameters
		----------
		filename : str
			Path to the input file (.json, .yml or .yaml)
		schema_file : str, optional
			Path to a JSON schema the file is validated against before building

		Returns
		-------
		JSONEquation
		"""
		if schema_file:
			validate_input_with_schema(filename, schema_file=schema_file)
		pyJSONEq.info(f"Building JSONEquation from {filename}")
		return cls(load_document(filename))

	# -- construction ----------------------------------------------------

	def _build_equation(self, eq_in):
		if not isinstance(eq_in, Mapping):
			raise SchemaError(f"top-level JSON value must be an object, got {type(eq_in).__name__}")
		if g.PIECES_KEY not in eq_in:
			raise SchemaError("missing pieces", field=g.PIECES_KEY)
		pieces_in = eq_in[g.PIECES_KEY]
		if not isinstance(pieces_in, list):
			raise SchemaError(f"\"{g.PIECES_KEY}\" must be an array", field=g.PIECES_KEY)

		x_units_str = self._units_entry(eq_in, g.X_UNITS_KEY)
		y_units_str = self._units_entry(eq_in, g.Y_UNITS_KEY)

		# Build into a fresh map and only publish it once every piece is in
		pieces = RangeMap()
		for idx, piece_in in enumerate(pieces_in):
			bounds, function = self._build_piece(piece_in, idx)
			try:
				pieces.insert(bounds, function)
			except OverlapError as e:
				raise OverlapError(f"overlapping piece: {e}", index=idx) from e

		self._pieces = pieces
		self._x_units_str = x_units_str
		self._y_units_str = y_units_str
		self.x_units = parse_units(x_units_str)
		self.y_units = parse_units(y_units_str)
		pyJSONEq.debug(f"Built JSONEquation with {len(pieces)} pieces")

	@staticmethod
	def _units_entry(eq_in, key):
		value = eq_in.get(key)
		if value is None:
			return None
		if not isinstance(value, str):
			raise SchemaError(f"\"{key}\" must be a string", field=key)
		try:
			parse_units(value)
		except ValueError as e:
			raise SchemaError(str(e), field=key) from e
		return value

	@staticmethod
	def _build_piece(piece_in, idx):
		"""
		Validate one element of the "pieces" list and turn it into a range and
		a PolynomialEquation.
		"""
		if not isinstance(piece_in, Mapping):
			raise SchemaError("piece must be an object", index=idx)

		# The bounds must be specified
		for key in (g.LOWER_BOUND_KEY, g.UPPER_BOUND_KEY):
			if key not in piece_in:
				raise SchemaError(f"missing {key}", index=idx, field=key)

		validate_piece(piece_in, idx)

		try:
			bounds = NumericRange(
				piece_in[g.LOWER_BOUND_KEY],
				piece_in[g.UPPER_BOUND_KEY],
				lower_inclusive=piece_in.get(g.LB_INCLUSIVE_KEY, g.DEFAULT_LB_INCLUSIVE),
				upper_inclusive=piece_in.get(g.UB_INCLUSIVE_KEY, g.DEFAULT_UB_INCLUSIVE),
			)
		except (ValueError, OverflowError) as e:
			raise SchemaError(str(e), index=idx, field=None) from e
		if bounds.lower > bounds.upper:
			raise SchemaError(f"lower_bound {bounds.lower:g} is greater than upper_bound {bounds.upper:g}",
			                  index=idx, field=g.LOWER_BOUND_KEY)
		if bounds.is_empty():
			raise SchemaError(f"range {bounds} contains no points", index=idx, field=g.LOWER_BOUND_KEY)

		numerator_present = g.NUMERATOR_KEY in piece_in
		denominator_present = g.DENOMINATOR_KEY in piece_in

		if not numerator_present and not denominator_present:
			zero = tuple(Monomial(p, c) for p, c in g.ZERO_POLYNOMIAL)
			return bounds, PolynomialEquation(zero, zero)

		numerator = JSONEquation._terms(piece_in, g.NUMERATOR_KEY, idx) if numerator_present else None
		denominator = JSONEquation._terms(piece_in, g.DENOMINATOR_KEY, idx) if denominator_present else None
		return bounds, PolynomialEquation(numerator, denominator)

	@staticmethod
	def _terms(piece_in, key, idx):
		# Parallel arrays in JSON, one Monomial per index in memory
		poly_in = piece_in[key]
		try:
			return terms_from_lists(poly_in[g.POWERS_KEY], poly_in[g.COEFFICIENTS_KEY])
		except ValueError as e:
			raise SchemaError(f"{key} powers/coefficients length mismatch: {e}", index=idx, field=key) from e
		except OverflowError as e:
			raise SchemaError(f"{key} value out of floating point range: {e}", index=idx, field=key) from e

	# -- evaluation ------------------------------------------------------

	def calculate(self, x):
		"""
		Calculate the output of the system at x.

		Parameters
		----------
		x : float or pint.Quantity
			Input to the system. A Quantity is converted to the equation's
			x units first.

		Returns
		-------
		float, pint.Quantity or None
			None if x is not included in the range of any piece. Otherwise
			the value of that piece, carrying the y units when x was a
			Quantity.
		"""
		x_magnitude = to_magnitude(x, self.x_units)
		function = self._pieces.find(x_magnitude)
		if function is None:
			return None
		result = function.calculate(x_magnitude)
		if isinstance(x, Quantity):
			return with_units(result, self.y_units)
		return result

	evaluate = calculate

	def __call__(self, x):
		return self.calculate(x)

	def evaluate_vectorized(self, x_array):
		"""
		Evaluate the system at multiple points simultaneously.

		Points outside every piece evaluate to NaN.
		"""
		is_quantity = isinstance(x_array, Quantity)
		x = np.asarray(to_magnitude(x_array, self.x_units), dtype=float)
		result = np.full(x.shape, np.nan)

		indices = self._pieces.find_many(x)
		for i, function in enumerate(self._pieces.values()):
			mask = indices == i
			if np.any(mask):
				result[mask] = function.calculate_vectorized(x[mask])

		return with_units(result, self.y_units) if is_quantity else result

	# -- inspection ------------------------------------------------------

	def domain(self):
		"""Ranges of all pieces, in ascending order"""
		return self._pieces.ranges()

	def pieces(self):
		"""(range, PolynomialEquation) pairs in ascending order"""
		return self._pieces.items()

	def __len__(self):
		return len(self._pieces)

	def __iter__(self):
		return iter(self._pieces.items())

	def __contains__(self, x):
		return to_magnitude(x, self.x_units) in self._pieces

	def to_json(self):
		"""Return the JSON document of this equation, with every default spelled out"""
		pieces_out = []
		for bounds, function in self._pieces.items():
			pieces_out.append({
				g.LOWER_BOUND_KEY: bounds.lower,
				g.UPPER_BOUND_KEY: bounds.upper,
				g.LB_INCLUSIVE_KEY: bounds.lower_inclusive,
				g.UB_INCLUSIVE_KEY: bounds.upper_inclusive,
				g.NUMERATOR_KEY: {
					g.POWERS_KEY: [t.power for t in function.numerator],
					g.COEFFICIENTS_KEY: [t.coefficient for t in function.numerator],
				},
				g.DENOMINATOR_KEY: {
					g.POWERS_KEY: [t.power for t in function.denominator],
					g.COEFFICIENTS_KEY: [t.coefficient for t in function.denominator],
				},
			})
		out = {g.PIECES_KEY: pieces_out}
		if self._x_units_str is not None:
			out[g.X_UNITS_KEY] = self._x_units_str
		if self._y_units_str is not None:
			out[g.Y_UNITS_KEY] = self._y_units_str
		return out

	# -- value semantics -------------------------------------------------

	def copy(self):
		"""Return an independent copy of this equation"""
		other = JSONEquation()
		other._pieces = self._pieces.copy()
		other._x_units_str = self._x_units_str
		other._y_units_str = self._y_units_str
		other.x_units = self.x_units
		other.y_units = self.y_units
		return other

	def __copy__(self):
		return self.copy()

	def __deepcopy__(self, memo):
		# Ranges and PolynomialEquations are immutable, a fresh map suffices
		return self.copy()

	def swap(self, other):
		"""Exchange the pieces and units of two equations"""
		self._pieces, other._pieces = other._pieces, self._pieces
		self._x_units_str, other._x_units_str = other._x_units_str, self._x_units_str
		self._y_units_str, other._y_units_str = other._y_units_str, self._y_units_str
		self.x_units, other.x_units = other.x_units, self.x_units
		self.y_units, other.y_units = other.y_units, self.y_units

	def __eq__(self, other):
		if not isinstance(other, JSONEquation):
			return NotImplemented
		return (self._pieces == other._pieces
		        and self.x_units == other.x_units
		        and self.y_units == other.y_units)

	__hash__ = None

	def __str__(self):
		if not len(self._pieces):
			return "No pieces defined."
		out = []
		for bounds, function in self._pieces.items():
			out.append(f"for x in {bounds}: {function}")
		return "\n".join(out)

	def __repr__(self):
		return f"JSONEquation({self.to_json()!r})"

	def plot(self, ax=None, num_points=g.PLOT_POINTS, color='blue', title=None, linewidth=2, show=True):
		"""
		Plot every piece of the equation.

		Pieces with an infinite bound are skipped.

		Parameters
		----------
		ax : matplotlib.axes.Axes, optional
			Axes to plot on. If None, creates a new figure and axes.
		num_points : int, optional
			Number of samples per piece
		color : str, optional
			Line color
		title : str, optional
			Plot title
		linewidth : float, optional
			Width of the plot line
		show : bool, optional
			Whether to show the plot immediately

		Returns
		-------
		matplotlib.axes.Axes
			The axes containing the plot
		"""
		import matplotlib.pyplot as plt

		if ax is None:
			fig, ax = plt.subplots(figsize=(10, 6))

		if not len(self._pieces):
			ax.text(0.5, 0.5, "No function defined", ha='center', va='center')
			return ax

		for bounds, function in self._pieces.items():
			if math.isinf(bounds.lower) or math.isinf(bounds.upper):
				pyJSONEq.warning(f"Skipping unbounded piece {bounds} in plot")
				continue
			x_values = np.linspace(bounds.lower, bounds.upper, num_points)
			# Drop excluded end points
			keep = np.array([bounds.contains(x) for x in x_values], dtype=bool)
			x_values = x_values[keep]
			ax.plot(x_values, function.calculate_vectorized(x_values), color=color, linewidth=linewidth)
			for breakpoint in (bounds.lower, bounds.upper):
				ax.axvline(x=breakpoint, color='gray', linestyle=':', alpha=0.7, linewidth=1)

		ax.set_xlabel(f"x [{self.x_units}]")
		ax.set_ylabel(f"y [{self.y_units}]")
		if title:
			ax.set_title(title)
		ax.grid(True, linestyle='--', alpha=0.7)

		if show:
			plt.tight_layout()
			plt.show()

		return ax


def swap(first, second):
	"""Swap two systems (i.e. their pieces) in memory"""
	first.swap(second)
