"""Condition evaluation for Condition and Filter nodes."""

from typing import Any

from core.exceptions import UnknownOperator
from workflow.values import compare, loosely_equal, stringify_value

OPERATORS = ("==", "!=", ">", "<", ">=", "<=", "contains")


class ConditionEvaluator:
    """Applies one comparison operator to two already-interpolated operands."""

    @staticmethod
    def evaluate(left: Any, operator: str, right: Any) -> bool:
        """Evaluate `left <operator> right`.

        Raises:
            UnknownOperator: If the operator is not supported
        """
        if operator == "==":
            return loosely_equal(left, right)
        if operator == "!=":
            return not loosely_equal(left, right)
        if operator in (">", "<", ">=", "<="):
            return compare(left, right, operator)
        if operator == "contains":
            return stringify_value(right) in stringify_value(left)
        raise UnknownOperator(str(operator))
