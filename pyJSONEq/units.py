"""
Units handling module for pyJSONEq.

Equations may declare the units of their input ("x_units") and output
("y_units"). Inputs given as pint Quantities are converted to the input units
before evaluation and results are returned with the output units attached.
"""
import pint
from pint import Quantity

ureg = pint.UnitRegistry()
ureg.default_system = 'mks'  # meter-kilogram-second


def parse_units(unit_string):
    """
    Parse a unit expression such as "m", "kN/m" or "dimensionless".

    Parameters
    ----------
    unit_string : str or None
        Unit expression. None means dimensionless.

    Returns
    -------
    pint.Unit
        The parsed unit from the package registry

    Raises
    ------
    ValueError
        If the expression is not a valid pint unit
    """
    if unit_string is None:
        return ureg.dimensionless
    try:
        return ureg.parse_units(unit_string)
    except (pint.errors.PintError, AttributeError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid unit expression {unit_string!r}: {e}") from e


def to_magnitude(x, units):
    """
    Strip units from x after converting it to `units`.

    Plain numbers and arrays are returned unchanged.

    Raises
    ------
    ValueError
        If x is a Quantity whose dimensionality differs from `units`
    """
    if not isinstance(x, Quantity):
        return x
    if x.dimensionality != units.dimensionality:
        raise ValueError(f"Input x units {x.units} not compatible with equation x units {units}")
    return x.to(units).magnitude


def with_units(value, units):
    """Attach units to a scalar or array result; None passes through"""
    if value is None:
        return None
    return ureg.Quantity(value, units)
