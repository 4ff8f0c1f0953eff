"""
pyJSONEq - Python JSON Equations

This package represents piecewise rational-polynomial functions of a single
variable that are described declaratively in JSON, and evaluates them.
"""
# Import the logger first so every submodule can use the package logger
from . import logger
from . import globals as _globals

# Package-level logger object for easy import
log = logger.setup_logger(level=_globals.LOG_LEVEL, log_file=_globals.LOG_FILE)


# Convenience functions at package level
def debug(msg, *args, **kwargs):
    log.debug(msg, *args, **kwargs)

def info(msg, *args, **kwargs):
    log.info(msg, *args, **kwargs)

def warning(msg, *args, **kwargs):
    log.warning(msg, *args, **kwargs)

def error(msg, *args, **kwargs):
    log.error(msg, *args, **kwargs)

def critical(msg, *args, **kwargs):
    log.critical(msg, *args, **kwargs)

def log_exception(message="An exception occurred", exc_info=None):
    logger.log_exception(log, exc_info, message)


# Import other modules after logger is set up
from pyJSONEq.units import ureg
from pyJSONEq.numeric_range import NumericRange, RangeMap, SchemaError, OverlapError
from pyJSONEq.equations import Monomial, PolynomialEquation, JSONEquation, swap

__all__ = [
    'NumericRange', 'RangeMap', 'SchemaError', 'OverlapError',
    'Monomial', 'PolynomialEquation', 'JSONEquation', 'swap',
    'ureg',
    'debug', 'info', 'warning', 'error', 'critical', 'log_exception',
]
# Package version
__version__ = '0.1.0'
