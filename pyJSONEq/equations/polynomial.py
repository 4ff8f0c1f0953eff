import math

import numpy as np

from pyJSONEq.globals import UNIT_POLYNOMIAL


class Monomial:
	"""
	A single term c * x^p of a polynomial in one variable.

	Powers may be negative or fractional; they are evaluated with real-power
	semantics, so 0^0 == 1 and a negative base raised to a fractional power
	is NaN.
	"""

	__slots__ = ("power", "coefficient")

	def __init__(self, power=0.0, coefficient=1.0):
		object.__setattr__(self, "power", float(power))
		object.__setattr__(self, "coefficient", float(coefficient))

	def __setattr__(self, name, value):
		raise AttributeError("Monomial is immutable")

	def evaluate(self, x):
		with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
			return self.coefficient * np.power(x, self.power)

	def __eq__(self, other):
		if not isinstance(other, Monomial):
			return NotImplemented
		return (self.power, self.coefficient) == (other.power, other.coefficient)

	def __hash__(self):
		return hash((self.power, self.coefficient))

	def __str__(self):
		if self.power == 0:
			return f"{self.coefficient:g}"
		if self.power == 1:
			return f"{self.coefficient:g}x"
		return f"{self.coefficient:g}x^{self.power:g}"

	def __repr__(self):
		return f"Monomial(power={self.power!r}, coefficient={self.coefficient!r})"


def terms_from_lists(powers, coefficients):
	"""
	Zip parallel power / coefficient lists into a tuple of Monomials.

	Raises
	------
	ValueError
		If the lists differ in length
	"""
	if len(powers) != len(coefficients):
		raise ValueError(f"len(powers) = {len(powers)} != len(coefficients) = {len(coefficients)}")
	return tuple(Monomial(p, c) for p, c in zip(powers, coefficients))


def polynomial_evaluation(terms, x):
	"""
	Sum the terms at x, in their declared order.

	Works for scalars and numpy arrays alike; accumulating term by term keeps
	the rounding of the vectorized path identical to the scalar one.
	"""
	values = [term.evaluate(x) for term in terms]
	if not values:
		return 0.0
	# Start from the first term, not 0.0, so a lone -0.0 keeps its sign
	res = values[0]
	for value in values[1:]:
		res = res + value
	return res


def _divide(numerator_val, denominator_val):
	"""Scalar division with 0/0 == 0 and IEEE signed infinity for c/0"""
	if denominator_val == 0:
		if numerator_val == 0:
			return 0.0
		if math.isnan(numerator_val):
			return math.nan
		# The sign of a zero denominator participates, as in IEEE division
		return math.copysign(math.inf, numerator_val) * math.copysign(1.0, denominator_val)
	return numerator_val / denominator_val


class PolynomialEquation:
	"""
	A rational polynomial: numerator(x) / denominator(x).

	Both numerator and denominator are sequences of Monomials of the same
	variable. Either defaults to the constant 1.
	"""

	def __init__(self, numerator=None, denominator=None):
		unit = tuple(Monomial(p, c) for p, c in UNIT_POLYNOMIAL)
		self._numerator = tuple(numerator) if numerator is not None else unit
		self._denominator = tuple(denominator) if denominator is not None else unit

	@property
	def numerator(self):
		return self._numerator

	@property
	def denominator(self):
		return self._denominator

	def calculate(self, x):
		"""
		Calculate numerator(x) / denominator(x).

		Parameters
		----------
		x : float
			Input to the expression

		Returns
		-------
		float
			0.0 when both numerator and denominator vanish, a signed infinity
			when only the denominator does, the quotient otherwise
		"""
		x = float(x)
		numerator_val = float(polynomial_evaluation(self._numerator, x))
		denominator_val = float(polynomial_evaluation(self._denominator, x))
		return _divide(numerator_val, denominator_val)

	def __call__(self, x):
		return self.calculate(x)

	def calculate_vectorized(self, x_array):
		"""Evaluate at every point of x_array, with the same rules as calculate"""
		x = np.asarray(x_array, dtype=float)
		numerator_val = np.broadcast_to(polynomial_evaluation(self._numerator, x), x.shape)
		denominator_val = np.broadcast_to(polynomial_evaluation(self._denominator, x), x.shape)
		with np.errstate(divide='ignore', invalid='ignore'):
			result = np.divide(numerator_val, denominator_val)
		return np.where((numerator_val == 0) & (denominator_val == 0), 0.0, result)

	def __eq__(self, other):
		if not isinstance(other, PolynomialEquation):
			return NotImplemented
		return self._numerator == other._numerator and self._denominator == other._denominator

	def __hash__(self):
		return hash((self._numerator, self._denominator))

	def __str__(self):
		num = " + ".join(str(t) for t in self._numerator) or "0"
		den = " + ".join(str(t) for t in self._denominator) or "0"
		return f"({num}) / ({den})"

	def __repr__(self):
		return f"PolynomialEquation(numerator={list(self._numerator)!r}, denominator={list(self._denominator)!r})"
