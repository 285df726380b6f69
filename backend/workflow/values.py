"""Value coercion shared by templating, conditions and filters.

Workflow authors write configs as strings in the editor, so values
cross between text and numbers constantly. These helpers pin down how
that happens:

- stringify_value: how a resolved value is rendered into a template
- coerce_number: whether a string is "a number" (whole-string parse)
- loosely_equal / compare: the comparison rules used by Condition and
  Filter nodes
"""

import math
import re
from typing import Any, Optional

_DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_PREFIXED_INT_RE = re.compile(r"^0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")


def stringify_value(value: Any) -> str:
    """Render a value the way it appears when substituted into text.

    Booleans are lowercase, None is "null", integral floats drop the
    trailing ".0", lists are comma-joined and mappings collapse to
    "[object Object]".
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ",".join("" if item is None else stringify_value(item) for item in value)
    if isinstance(value, dict):
        return "[object Object]"
    return str(value)


def coerce_number(text: str) -> Optional[float | int]:
    """Parse a whole string as a finite number, or return None.

    Blank strings are not numbers here (they stay text).
    """
    stripped = text.strip()
    if not stripped:
        return None

    if _PREFIXED_INT_RE.match(stripped):
        return int(stripped, 0)

    if not _DECIMAL_RE.match(stripped):
        return None

    number = float(stripped)
    if not math.isfinite(number):
        return None
    if number.is_integer():
        return int(number)
    return number


def _to_number(value: Any) -> float:
    """Numeric view of any value; NaN when there is none."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        if not value.strip():
            return 0.0
        number = coerce_number(value)
        return float(number) if number is not None else math.nan
    if isinstance(value, (list, tuple)):
        return _to_number(stringify_value(value))
    return math.nan


def _to_primitive(value: Any) -> Any:
    if isinstance(value, (list, tuple, dict)):
        return stringify_value(value)
    return value


def loosely_equal(left: Any, right: Any) -> bool:
    """Equality with type coercion between numbers, numeric text and booleans.

    None only equals None; two containers are equal only when they are
    the same object.
    """
    if left is None or right is None:
        return left is None and right is None

    left_container = isinstance(left, (list, tuple, dict))
    right_container = isinstance(right, (list, tuple, dict))
    if left_container and right_container:
        return left is right
    if left_container or right_container:
        return loosely_equal(_to_primitive(left), _to_primitive(right))

    if isinstance(left, str) and isinstance(right, str):
        return left == right

    left_num = _to_number(left)
    right_num = _to_number(right)
    if math.isnan(left_num) or math.isnan(right_num):
        return False
    return left_num == right_num


def compare(left: Any, right: Any, operator: str) -> bool:
    """Ordering comparison for >, <, >=, <=.

    Two strings compare lexicographically; anything else compares
    numerically, and a non-numeric side makes the comparison false.
    """
    left = _to_primitive(left)
    right = _to_primitive(right)

    if isinstance(left, str) and isinstance(right, str):
        a, b = left, right
    else:
        a, b = _to_number(left), _to_number(right)
        if math.isnan(a) or math.isnan(b):
            return False

    if operator == ">":
        return a > b
    if operator == "<":
        return a < b
    if operator == ">=":
        return a >= b
    if operator == "<=":
        return a <= b
    raise ValueError(f"Not an ordering operator: {operator}")
