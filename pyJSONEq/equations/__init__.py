"""
pyJSONEq Equations Module

This module provides the rational polynomial of a single piece and the
piecewise equation built from a JSON document.
"""

from pyJSONEq.equations.polynomial import Monomial, PolynomialEquation, polynomial_evaluation, terms_from_lists
from pyJSONEq.equations.json_equation import JSONEquation, swap

__all__ = [
	'Monomial',
	'PolynomialEquation',
	'polynomial_evaluation',
	'terms_from_lists',
	'JSONEquation',
	'swap',
]
