"""
Tests for formula translation and evaluation
"""

import math

import pytest
from simpleeval import NameNotDefined
from src.vis_format import FormulaBudgetExceeded, FormulaEvaluator, translate_formula


@pytest.fixture
def evaluator():
    """Evaluator with the default budgets."""
    return FormulaEvaluator()


class TestTranslateFormula:
    """Test rewriting of the formula dialect."""

    def test_plain_expression_is_kept(self):
        assert translate_formula('a * 2 + 1') == 'a * 2 + 1'

    def test_strict_equality(self):
        assert translate_formula('a === 1') == 'a == 1'
        assert translate_formula('a !== 1') == 'a != 1'

    def test_ternary(self):
        assert translate_formula("a > 1 ? 'hi' : 'lo'") == "('hi') if (a > 1) else ('lo')"

    def test_operators_inside_strings_are_kept(self):
        assert translate_formula("a ? 'x && !y' : 'z'") == "('x && !y') if (a) else ('z')"


class TestFormulaEvaluator:
    """Test evaluation of translated formulas."""

    @pytest.mark.parametrize('formula, names, expected', [
        ('a * 2', {'a': 21}, 42),
        ("a > 2 ? 'big' : a > 1 ? 'mid' : 'small'", {'a': 1.5}, 'mid'),
        ('a === 1 && !b', {'a': 1, 'b': False}, True),
        ('a || b', {'a': 0, 'b': 'fallback'}, 'fallback'),
        ('a === null', {'a': None}, True),
        ("'T: ' + a", {'a': 21.5}, 'T: 21.5'),
        ('Math.round(2.5) + Math.max(1, 5)', {}, 8),
        ('Math.round(a > 1 ? 1.6 : 0.4)', {'a': 2}, 2),
        ("parseInt('42px') + parseFloat('0.5')", {}, 42.5),
        ("isNaN('abc')", {}, True),
        ('7 % 3', {}, 1.0),
        ('obj.entries[0]', {'obj': {'entries': ['first']}}, 'first'),
    ])
    def test_evaluate(self, evaluator, formula, names, expected):
        assert evaluator.evaluate(formula, names) == expected

    @pytest.mark.parametrize('formula, names, expected', [
        ('a * 2', {'a': '5'}, 10.0),
        ('a - 1', {'a': '5'}, 4.0),
        ('a / 2', {'a': '5'}, 2.5),
        ('a % 2', {'a': '5'}, 1.0),
        ('a ** 2', {'a': '3'}, 9.0),
        ('-a', {'a': '5'}, -5.0),
        ('a + 1', {'a': '5'}, '51'),
        ("a > 3 ? 'hi' : 'lo'", {'a': '5'}, 'hi'),
        ('a <= 5', {'a': ' 5 '}, True),
        ('a < b', {'a': '10', 'b': '9'}, True),
        ('a * 2', {'a': None}, 0),
        ('a * 2', {'a': True}, 2),
        ('a - 1', {'a': ''}, -1),
    ])
    def test_string_operands_are_coerced(self, evaluator, formula, names, expected):
        assert evaluator.evaluate(formula, names) == expected

    def test_non_numeric_string_is_nan(self, evaluator):
        assert math.isnan(evaluator.evaluate('a * 2', {'a': '12px'}))
        assert evaluator.evaluate('a > 3', {'a': 'abc'}) is False

    def test_division_by_zero(self, evaluator):
        assert evaluator.evaluate('1 / 0') == math.inf

    def test_unknown_name(self, evaluator):
        with pytest.raises(NameNotDefined):
            evaluator.evaluate('missing + 1')

    def test_syntax_error(self, evaluator):
        with pytest.raises(SyntaxError):
            evaluator.evaluate('a +', {'a': 1})

    def test_private_attributes_are_forbidden(self, evaluator):
        with pytest.raises(Exception):
            evaluator.evaluate('a.__class__', {'a': 1})

    def test_step_budget(self):
        evaluator = FormulaEvaluator(max_steps=5)

        with pytest.raises(FormulaBudgetExceeded):
            evaluator.evaluate('1 + 2 + 3 + 4 + 5 + 6')

    def test_time_budget(self):
        evaluator = FormulaEvaluator(timeout=-1)

        with pytest.raises(FormulaBudgetExceeded):
            evaluator.evaluate('1 + 1')

    def test_describe(self):
        script = FormulaEvaluator.describe('a + 1', {'a': 2})

        assert script == 'const a = 2; return a + 1;'
