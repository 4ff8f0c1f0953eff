import copy
import io
import json
import math
import os

import numpy as np
import pytest

from pyJSONEq import ureg
from pyJSONEq.equations import JSONEquation, swap
from pyJSONEq.numeric_range import NumericRange, OverlapError, SchemaError

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")


def load(name):
    with open(os.path.join(DATA_DIR, name), "r", encoding="utf-8") as f:
        return JSONEquation.from_stream(f)


def piece(lower, upper, **kwargs):
    p = {"lower_bound": lower, "upper_bound": upper}
    p.update(kwargs)
    return p


def constant(c):
    return {"powers": [0], "coefficients": [c]}


def test_single_piece():
    equation = load("single_piece.json")

    assert equation.calculate(0) == 5.0
    assert equation.calculate(0.5) == 5.0
    assert equation.calculate(1) == 5.0
    # Values outside the bounds of all pieces have no value
    assert equation.calculate(5) is None
    assert equation.calculate(-0.001) is None


def test_call_and_evaluate_are_calculate():
    equation = load("single_piece.json")
    assert equation(0) == 5.0
    assert equation.evaluate(0) == 5.0


def test_multiple_pieces():
    equation = load("multiple_pieces.json")

    assert equation.calculate(0) == 2.0
    assert equation.calculate(1.5) == pytest.approx(3.5)
    # 2.0 is excluded from [0, 2) and included in [2, 2.5)
    assert equation.calculate(2.0) == 10.0
    assert equation.calculate(2.5) is None
    assert equation.calculate(2.75) is None
    assert equation.calculate(4.0) == 32.0
    assert equation.calculate(5.0) == 42.0
    assert len(equation) == 3
    assert [str(r) for r in equation.domain()] == ["[0, 2)", "[2, 2.5)", "[3, 5]"]


def test_missing_numerator_or_denominator():
    equation = load("missing_numerator_denominator.json")

    # numerator XOR denominator missing: the missing one is 1
    assert equation.calculate(0) == 5.0
    assert equation.calculate(0.75) == 5.0
    assert equation.calculate(1.0) == -0.5
    # numerator AND denominator missing: the piece is 0
    for x in (2.0, 2.5, 3.0):
        assert equation.calculate(x) == 0.0


def test_missing_inclusive_attribute_defaults_to_true():
    equation = load("missing_inclusive_attr.json")
    assert equation.calculate(0) == 5.0
    assert equation.calculate(1) == 15.0

    explicit = {"pieces": [piece(0, 1, lb_inclusive=True, ub_inclusive=True,
                                 numerator={"powers": [0, 1], "coefficients": [5, 10]})]}
    assert JSONEquation(explicit) == equation


@pytest.mark.parametrize("name", [
    "missing_lb.json",
    "missing_ub.json",
    "mismatch_power_coeff_len.json",
    "missing_pieces_key.json",
    "overlapping_pieces.json",
])
def test_malformed_files_raise(name):
    with pytest.raises(SchemaError):
        load(name)


@pytest.mark.parametrize("missing", ["lower_bound", "upper_bound"])
def test_missing_bound_reports_field_and_index(missing):
    pieces = [piece(0, 1), piece(2, 3), piece(4, 5)]
    del pieces[2][missing]
    with pytest.raises(SchemaError) as excinfo:
        JSONEquation({"pieces": pieces})
    assert excinfo.value.index == 2
    assert excinfo.value.field == missing
    assert f"missing {missing}" in str(excinfo.value)


@pytest.mark.parametrize("key", ["numerator", "denominator"])
@pytest.mark.parametrize("powers, coefficients", [
    ([0], []),
    ([], [1]),
    ([0, 1], [1]),
    ([0], [1, 2, 3]),
])
def test_length_mismatch_rejected(key, powers, coefficients):
    doc = {"pieces": [piece(0, 1, **{key: {"powers": powers, "coefficients": coefficients}})]}
    with pytest.raises(SchemaError) as excinfo:
        JSONEquation(doc)
    assert excinfo.value.field == key
    assert "length mismatch" in str(excinfo.value)


@pytest.mark.parametrize("doc", [
    {},
    {"piece": []},
    {"Pieces": [piece(0, 1)]},
])
def test_missing_pieces_key(doc):
    with pytest.raises(SchemaError, match="missing pieces"):
        JSONEquation(doc)


@pytest.mark.parametrize("doc", [
    [],
    "pieces",
    {"pieces": {"lower_bound": 0, "upper_bound": 1}},
    {"pieces": [5]},
    {"pieces": [piece("0", 1)]},
    {"pieces": [piece(0, 1, lb_inclusive=1)]},
    {"pieces": [piece(0, 1, numerator={"powers": [0]})]},
    {"pieces": [piece(0, 1, numerator={"powers": ["x"], "coefficients": [1]})]},
    {"pieces": [piece(True, 1)]},
    {"pieces": [piece(0, 1)], "x_units": 5},
    {"pieces": [piece(0, 1)], "y_units": "not_a_unit"},
    {"pieces": [piece(0, 10**400)]},
    {"pieces": [piece(-10**400, 0)]},
    {"pieces": [piece(0, 1, numerator={"powers": [10**400], "coefficients": [1]})]},
    {"pieces": [piece(0, 1, denominator={"powers": [0], "coefficients": [10**400]})]},
])
def test_wrong_types_rejected(doc):
    with pytest.raises(SchemaError):
        JSONEquation(doc)


def test_out_of_range_coefficient_reports_field_and_index():
    doc = {"pieces": [piece(0, 1), piece(2, 3, denominator={"powers": [0], "coefficients": [10**400]})]}
    with pytest.raises(SchemaError) as excinfo:
        JSONEquation(doc)
    assert excinfo.value.index == 1
    assert excinfo.value.field == "denominator"


def test_lower_bound_greater_than_upper_bound_rejected():
    with pytest.raises(SchemaError, match="greater than"):
        JSONEquation({"pieces": [piece(2, 1)]})


def test_empty_range_rejected():
    with pytest.raises(SchemaError):
        JSONEquation({"pieces": [piece(1, 1, ub_inclusive=False)]})


def test_single_point_piece():
    equation = JSONEquation({"pieces": [piece(1, 1, numerator=constant(7))]})
    assert equation(1) == 7.0
    assert equation(1.0001) is None


@pytest.mark.parametrize("first, second", [
    (piece(0, 1), piece(1, 2)),
    (piece(0, 5), piece(1, 2)),
    (piece(0, 1, ub_inclusive=False), piece(0.5, 2, lb_inclusive=False)),
    (piece(-1, 1), piece(-1, 1)),
])
def test_overlap_rejected_regardless_of_order(first, second):
    for pieces in ([first, second], [second, first]):
        with pytest.raises(OverlapError) as excinfo:
            JSONEquation({"pieces": pieces})
        assert excinfo.value.index == 1
        assert "overlapping piece" in str(excinfo.value)


def test_adjacent_pieces_do_not_overlap():
    doc = {"pieces": [piece(0, 1, numerator=constant(1)),
                      piece(1, 2, lb_inclusive=False, numerator=constant(2))]}
    equation = JSONEquation(doc)
    assert equation(1) == 1.0
    assert equation(1.5) == 2.0


def test_failed_rebuild_keeps_existing_pieces():
    equation = load("single_piece.json")
    doc = {"pieces": [piece(10, 11, numerator=constant(1)), piece(0, 1), piece(0.5, 2)]}
    with pytest.raises(OverlapError) as excinfo:
        equation._build_equation(doc)
    assert excinfo.value.index == 2
    assert len(equation) == 1
    assert equation(0.5) == 5.0
    assert equation(10.5) is None


def test_empty_pieces_list():
    equation = JSONEquation({"pieces": []})
    assert len(equation) == 0
    assert equation(0) is None
    assert str(equation) == "No pieces defined."


def test_default_constructed_equation_has_no_domain():
    equation = JSONEquation()
    assert equation(0) is None
    assert equation.domain() == []


def test_division_edge_cases():
    # x / x on [-1, 1], and -4 / (x - 2) on (1, 3] whose denominator vanishes at 2
    doc = {"pieces": [
        piece(-1, 1, numerator={"powers": [1], "coefficients": [1]},
              denominator={"powers": [1], "coefficients": [1]}),
        piece(1, 3, lb_inclusive=False, numerator=constant(-4),
              denominator={"powers": [1, 0], "coefficients": [1, -2]}),
    ]}
    equation = JSONEquation(doc)
    assert equation(0) == 0.0
    assert equation(0.5) == 1.0
    assert equation(2) == -math.inf
    assert math.isinf(equation(2))
    assert equation(3) == -4.0


def test_evaluate_is_idempotent():
    equation = load("multiple_pieces.json")
    results = [equation(4.0) for _ in range(5)]
    assert results == [32.0] * 5


def test_evaluate_vectorized():
    equation = load("multiple_pieces.json")
    xs = np.array([0.0, 1.5, 2.0, 2.5, 4.0, 5.0, 6.0])
    result = equation.evaluate_vectorized(xs)
    assert result[:3] == pytest.approx(np.array([2.0, 3.5, 10.0]))
    assert np.isnan(result[3])
    assert result[4:6] == pytest.approx(np.array([32.0, 42.0]))
    assert np.isnan(result[6])


def test_swap():
    equation1 = load("single_piece.json")
    with open(os.path.join(DATA_DIR, "multiple_pieces.json"), "r", encoding="utf-8") as f:
        equation2 = JSONEquation(json.load(f))

    assert equation1(0) == 5.0
    assert equation2(0) == 2.0

    swap(equation1, equation2)

    assert equation1(0) == 2.0
    assert equation2(0) == 5.0
    assert equation1(4) == 32.0
    assert equation2(4) is None


def test_copy_is_independent():
    original = load("single_piece.json")
    for duplicate in (original.copy(), copy.copy(original), copy.deepcopy(original)):
        assert duplicate == original
        assert duplicate._pieces is not original._pieces

    duplicate = original.copy()
    replacement = load("multiple_pieces.json")
    duplicate.swap(replacement)
    assert original(0) == 5.0
    assert duplicate(0) == 2.0
    del original
    assert replacement(0) == 5.0


def test_to_json_rebuilds_equal_equation():
    equation = load("missing_numerator_denominator.json")
    rebuilt = JSONEquation(json.loads(json.dumps(equation.to_json())))
    assert rebuilt == equation
    for x in (0, 0.5, 1, 1.5, 2, 3):
        assert rebuilt(x) == equation(x)


def test_from_string():
    text = json.dumps({"pieces": [piece(0, 1, numerator=constant(3))]})
    assert JSONEquation.from_string(text)(0.5) == 3.0
    assert JSONEquation.from_stream(io.StringIO(text))(0.5) == 3.0


def test_str_lists_pieces():
    equation = load("multiple_pieces.json")
    lines = str(equation).splitlines()
    assert lines[0] == "for x in [0, 2): (2 + 1x) / (1)"
    assert len(lines) == 3


def test_contains_and_iteration():
    equation = load("multiple_pieces.json")
    assert 2.2 in equation
    assert 2.7 not in equation
    ranges = [r for r, _ in equation]
    assert ranges[0] == NumericRange(0, 2, upper_inclusive=False)


def test_units():
    equation = JSONEquation.from_file(os.path.join(DATA_DIR, "with_units.json"))
    result = equation(100 * ureg.cm)
    assert result.to(ureg.N).magnitude == pytest.approx(2.0)
    # Plain numbers are read in the equation's x units and return plain numbers
    assert equation(1) == 2.0
    assert equation(20 * ureg.m) is None
    with pytest.raises(ValueError):
        equation(1 * ureg.s)

    values = equation.evaluate_vectorized(np.array([1.0, 2.0]) * ureg.m)
    assert values.to(ureg.N).magnitude == pytest.approx(np.array([2.0, 4.0]))
    assert equation.to_json()["x_units"] == "m"


def test_plot_without_display():
    matplotlib = pytest.importorskip("matplotlib")
    matplotlib.use("Agg")
    equation = load("multiple_pieces.json")
    ax = equation.plot(show=False, title="multiple pieces")
    assert ax.get_title() == "multiple pieces"
    # one curve per piece plus the breakpoint markers
    assert len(ax.lines) >= 3
