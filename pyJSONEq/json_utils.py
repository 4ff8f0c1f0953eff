import json
import os

import jsonschema
from jsonschema import Draft7Validator

import pyJSONEq
from pyJSONEq.numeric_range import SchemaError

POLYNOMIAL_SCHEMA = {
    "type": "object",
    "required": ["powers", "coefficients"],
    "properties": {
        "powers": {"type": "array", "items": {"type": "number"}},
        "coefficients": {"type": "array", "items": {"type": "number"}},
    },
}

PIECE_SCHEMA = {
    "type": "object",
    "required": ["lower_bound", "upper_bound"],
    "properties": {
        "lower_bound": {"type": "number"},
        "upper_bound": {"type": "number"},
        "lb_inclusive": {"type": "boolean"},
        "ub_inclusive": {"type": "boolean"},
        "numerator": POLYNOMIAL_SCHEMA,
        "denominator": POLYNOMIAL_SCHEMA,
    },
}

EQUATION_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Piecewise rational-polynomial equation",
    "type": "object",
    "required": ["pieces"],
    "properties": {
        "pieces": {"type": "array", "items": PIECE_SCHEMA},
        "x_units": {"type": "string"},
        "y_units": {"type": "string"},
    },
}

PIECE_VALIDATOR = Draft7Validator(PIECE_SCHEMA)
EQUATION_VALIDATOR = Draft7Validator(EQUATION_SCHEMA)


def _error_path(error):
    return ".".join(str(p) for p in error.path) or None


def validate_piece(piece, index):
    """
    Check the JSON types of a single piece.

    Parameters
    ----------
    piece : dict
        One element of the "pieces" list
    index : int
        Position of the piece, used in the error message

    Raises
    ------
    SchemaError
        For the first violation found, naming the offending field
    """
    errors = sorted(PIECE_VALIDATOR.iter_errors(piece), key=lambda e: [str(p) for p in e.path])
    if errors:
        first = errors[0]
        field = _error_path(first)
        where = f"field '{field}': " if field else ""
        raise SchemaError(f"{where}{first.message}", index=index, field=field)


def load_document(filename):
    """
    Read a JSON or YAML document describing an equation.

    The format is chosen from the file extension; anything other than
    .yml/.yaml is read as JSON.
    """
    file_ext = os.path.splitext(filename)[1].lower()

    if file_ext in ['.yml', '.yaml']:
        try:
            import yaml
        except ImportError:
            pyJSONEq.error("PyYAML package not found. Install it using: pip install pyyaml")
            raise
        pyJSONEq.debug(f"Loading YAML file: {filename}")
        with open(filename, 'r', encoding='utf-8') as file:
            return yaml.safe_load(file)

    pyJSONEq.debug(f"Loading JSON file: {filename}")
    with open(filename, 'r', encoding='utf-8') as file:
        return json.load(file)


def validate_input_with_schema(input_file, schema_file=None):
    """
    Validate an input file against a JSON schema

    Parameters
    ----------
    input_file : str
        Path to the input file to validate (JSON or YAML)
    schema_file : str, optional
        Path to a JSON schema file; EQUATION_SCHEMA is used when omitted

    Returns
    -------
    bool
        True if validation succeeds

    Raises
    ------
    jsonschema.ValidationError
        If validation fails
    """
    if schema_file is None:
        validator = EQUATION_VALIDATOR
    else:
        with open(schema_file, 'r', encoding='utf-8') as f:
            validator = Draft7Validator(json.load(f))

    data = load_document(input_file)

    # Collect and report all errors
    errors = list(validator.iter_errors(data))
    if errors:
        pyJSONEq.error(f"Validation of {input_file} failed with {len(errors)} errors:")
        for i, error in enumerate(errors, 1):
            path = _error_path(error) or "root"
            pyJSONEq.error(f"{i}. Error at '{path}': {error.message}")

        raise jsonschema.ValidationError(f"Validation failed: {errors[0].message}")

    pyJSONEq.debug(f"{input_file} successfully validated against schema")
    return True
