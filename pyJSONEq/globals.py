"""
Global constants and configuration for the pyJSONEq package.

Values read from the environment are resolved once, at import time.
"""
import logging
import os

# Inclusivity used when "lb_inclusive" / "ub_inclusive" are omitted
DEFAULT_LB_INCLUSIVE = True
DEFAULT_UB_INCLUSIVE = True

# (power, coefficient) pairs used when a polynomial is omitted from a piece.
# A lone missing numerator or denominator becomes the constant 1; when both are
# missing, both become the constant 0 so the piece evaluates to 0.
UNIT_POLYNOMIAL = ((0.0, 1.0),)
ZERO_POLYNOMIAL = ((0.0, 0.0),)

# Key names of the JSON document
PIECES_KEY = "pieces"
LOWER_BOUND_KEY = "lower_bound"
UPPER_BOUND_KEY = "upper_bound"
LB_INCLUSIVE_KEY = "lb_inclusive"
UB_INCLUSIVE_KEY = "ub_inclusive"
NUMERATOR_KEY = "numerator"
DENOMINATOR_KEY = "denominator"
POWERS_KEY = "powers"
COEFFICIENTS_KEY = "coefficients"
X_UNITS_KEY = "x_units"
Y_UNITS_KEY = "y_units"

# Logging
LOG_LEVEL = getattr(logging, os.environ.get("PYJSONEQ_LOG_LEVEL", "WARNING").upper(), logging.WARNING)
LOG_FILE = os.environ.get("PYJSONEQ_LOG_FILE") or None

# Number of samples per piece used by JSONEquation.plot
PLOT_POINTS = 200
