"""Tests for the two-probe balance solver."""

import math

import pytest

from balance import solver
from balance.normalizer import InvalidExpressionError
from balance.solver import round_half_up, solve


class TestOutcomes:
    def test_single_unknown_is_solved(self):
        outcome = solve(["x", "3"], ["10"], {})
        assert outcome.kind == solver.SOLVED
        assert outcome.solved
        assert outcome.target == "x"
        assert outcome.value == 7
        assert outcome.probes == {"left": (3.0, 4.0), "right": (10.0, 10.0)}
        assert outcome.slopes == (1.0, 0.0)
        assert outcome.intercepts == (3.0, 10.0)
        assert outcome.equation == "x + 3 = 10"
        assert "x = 7" in outcome.message

    def test_balanced_for_any_value(self):
        outcome = solve(["x", "x"], ["2x"], {})
        assert outcome.kind == solver.BALANCED_FOR_ANY_VALUE
        assert outcome.target == "x"
        assert outcome.value is None
        assert outcome.equation == "2x = 2x"

    def test_no_solution(self):
        outcome = solve(["x+1"], ["x"], {})
        assert outcome.kind == solver.NO_SOLUTION
        assert outcome.target == "x"
        assert outcome.equation == "x + 1 = x"

    def test_no_blocks_on_scale(self):
        assert solve([], [], {}).kind == solver.NO_BLOCKS_ON_SCALE

    def test_nothing_to_solve(self):
        assert solve(["3"], ["4"], {}).kind == solver.NOTHING_TO_SOLVE
        assert solve(["x"], ["5"], {"x": 1}).kind == solver.NOTHING_TO_SOLVE

    def test_too_many_unknowns(self):
        outcome = solve(["x + 1"], ["y", "z"], {})
        assert outcome.kind == solver.TOO_MANY_UNKNOWNS
        assert outcome.unknowns == ("x", "y", "z")
        assert outcome.target is None
        assert "x, y, z" in outcome.message

    def test_one_pan_may_be_empty(self):
        outcome = solve(["x - 4"], [], {})
        assert outcome.kind == solver.SOLVED
        assert outcome.value == 4


class TestSolving:
    def test_known_variables_are_used(self):
        outcome = solve(["x + y"], ["10"], {"y": 2})
        assert outcome.value == 8

    def test_environment_is_not_modified(self):
        env = {"y": 2}
        solve(["x + y"], ["10"], env)
        assert env == {"y": 2}

    def test_builtin_names_are_not_unknowns(self):
        outcome = solve(["PI*x"], ["PI"], {})
        assert outcome.target == "x"
        assert outcome.value == 1

    def test_functions_are_not_unknowns(self):
        outcome = solve(["sqrt(4)*x"], ["log(100)"], {})
        assert outcome.target == "x"
        assert outcome.value == 1

    def test_result_rounded_to_two_decimals(self):
        assert solve(["3x"], ["1"], {}).value == 0.33
        assert solve(["3x"], ["2"], {}).value == 0.67

    def test_negative_solution(self):
        assert solve(["2x + 10"], ["4"], {}).value == -3

    def test_unknown_on_both_sides(self):
        outcome = solve(["5x - 2"], ["3x + 8"], {})
        assert outcome.value == 5
        assert outcome.equation == "5x - 2 = 3x + 8"

    def test_infinite_terms_weigh_nothing(self):
        outcome = solve(["x", "1/0"], ["5"], {})
        assert outcome.value == 5

    def test_non_linear_pan_is_fitted_through_two_probes(self):
        # x^2 sampled at 0 and 1 looks like the line x, so the answer is 4, not 2.
        outcome = solve(["x^2"], ["4"], {})
        assert outcome.kind == solver.SOLVED
        assert outcome.value == 4

    def test_very_large_solution_is_kept(self):
        big = "9" * 308
        outcome = solve(["x"], [big], {})
        assert outcome.kind == solver.SOLVED
        assert outcome.value == float(big)

    def test_overflowing_pan_total_has_no_solution(self):
        big = "9" * 308
        outcome = solve(["x", big, big], ["1"], {})
        assert outcome.kind == solver.NO_SOLUTION
        assert outcome.value is None
        assert outcome.target == "x"

    def test_solution_beyond_float_range_has_no_solution(self):
        big = "9" * 308
        outcome = solve(["0.5x"], [big], {})
        assert outcome.kind == solver.NO_SOLUTION

    def test_invalid_expression_raises(self):
        with pytest.raises(InvalidExpressionError, match="2x;"):
            solve(["2x;"], ["1"], {})

    def test_as_dict(self):
        data = solve(["x", "3"], ["10"], {}).as_dict()
        assert data == {
            "kind": "solved",
            "message": "The scale balances when x = 7.",
            "target": "x",
            "value": 7.0,
            "unknowns": ["x"],
            "equation": "x + 3 = 10",
        }


@pytest.mark.parametrize(
    "value,expected",
    [(0.125, 0.13), (-0.125, -0.12), (7.0, 7.0), (2.0 / 3.0, 0.67), (1.005, 1.0)],
)
def test_round_half_up(value, expected) -> None:
    assert round_half_up(value) == pytest.approx(expected)


def test_round_half_up_leaves_huge_and_non_finite_values() -> None:
    assert round_half_up(1e307) == 1e307
    assert round_half_up(float("inf")) == float("inf")
    assert math.isnan(round_half_up(float("nan")))


def test_pan_total_skips_undefined_and_non_finite() -> None:
    from balance.evaluator import compile_expression

    compiled = [compile_expression(e) for e in ["2", "y", "1/0", "0/0", "3"]]
    assert solver.pan_total(compiled, {}) == 5
