"""Tests for condition operators and branch selection."""

import pytest

from core.exceptions import UnknownOperator
from workflow.conditions import ConditionEvaluator
from workflow.walker import should_follow_condition_edge


@pytest.mark.unit
class TestConditionEvaluator:

    def test_loose_equality_across_types(self):
        assert ConditionEvaluator.evaluate(10, "==", "10")
        assert ConditionEvaluator.evaluate(True, "==", 1)
        assert ConditionEvaluator.evaluate("", "==", 0)
        assert not ConditionEvaluator.evaluate(None, "==", 0)
        assert ConditionEvaluator.evaluate(None, "==", None)
        assert ConditionEvaluator.evaluate("won", "!=", "lost")

    def test_numeric_ordering(self):
        assert ConditionEvaluator.evaluate(15000, ">=", 10000)
        assert not ConditionEvaluator.evaluate(500, ">=", 10000)
        assert ConditionEvaluator.evaluate("9", "<", 10)

    def test_string_ordering_is_lexicographic(self):
        assert ConditionEvaluator.evaluate("9", ">", "10")
        assert ConditionEvaluator.evaluate("apple", "<", "banana")

    def test_non_numeric_ordering_is_false(self):
        assert not ConditionEvaluator.evaluate("abc", ">", 1)
        assert not ConditionEvaluator.evaluate("abc", "<=", 1)

    def test_contains(self):
        assert ConditionEvaluator.evaluate("enterprise deal", "contains", "deal")
        assert ConditionEvaluator.evaluate(12345, "contains", 234)
        assert not ConditionEvaluator.evaluate("smb", "contains", "deal")

    def test_unknown_operator(self):
        with pytest.raises(UnknownOperator) as exc_info:
            ConditionEvaluator.evaluate(1, "=~", 1)
        assert exc_info.value.status_code == 422


@pytest.mark.unit
class TestConditionEdges:

    @pytest.mark.parametrize(
        "label,result,expected",
        [
            ("e-true", True, True),
            ("e-true", False, False),
            ("e-false", False, True),
            ("e-false", True, False),
            ("e-1", True, True),
            ("e-1", False, False),
            ("", True, True),
        ],
    )
    def test_branch_selection(self, label, result, expected):
        assert should_follow_condition_edge(label, result) is expected

    def test_label_case_insensitive(self):
        assert should_follow_condition_edge("Branch-TRUE", True)
        assert not should_follow_condition_edge("Branch-TRUE", False)
