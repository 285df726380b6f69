"""Template interpolation for node configs.

Resolves `{{ key }}` tokens against an ExecutionContext:

1. exact key in ctx.data
2. exact key in ctx.variables
3. dotted path walked through ctx.data (variables are never path-walked)

Unresolved tokens are left in place untouched, so "Hi {{name}}" with no
`name` anywhere stays "Hi {{name}}".
"""

import re
from typing import Any

from workflow.context import ExecutionContext
from workflow.values import coerce_number, stringify_value

TOKEN_RE = re.compile(r"\{\{([^}]+)\}\}")

_MISSING = object()


def _walk_path(root: Any, path: str) -> Any:
    current = root
    for part in path.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return _MISSING
    return current


def resolve_token(key: str, context: ExecutionContext) -> Any:
    """Look up one trimmed token key; returns a sentinel when unresolved."""
    data = context.data
    if isinstance(data, dict) and key in data:
        return data[key]

    if key in context.variables:
        return context.variables[key]

    return _walk_path(data, key)


class TemplateInterpolator:
    """Stateless `{{token}}` resolver."""

    @staticmethod
    def interpolate_string(template: str, context: ExecutionContext) -> str:
        """Substitute every resolvable token in a string."""
        if not isinstance(template, str):
            return template

        def _replace(match: re.Match) -> str:
            value = resolve_token(match.group(1).strip(), context)
            if value is _MISSING:
                return match.group(0)
            return stringify_value(value)

        return TOKEN_RE.sub(_replace, template)

    @classmethod
    def interpolate_object(cls, obj: Any, context: ExecutionContext) -> Any:
        """Recursively interpolate strings inside lists and dicts."""
        if isinstance(obj, str):
            return cls.interpolate_string(obj, context)
        if isinstance(obj, list):
            return [cls.interpolate_object(item, context) for item in obj]
        if isinstance(obj, dict):
            return {key: cls.interpolate_object(value, context) for key, value in obj.items()}
        return obj

    @classmethod
    def interpolate_value(cls, value: Any, context: ExecutionContext) -> Any:
        """Interpolate a string, then turn it into a number if it is one."""
        if not isinstance(value, str):
            return value
        interpolated = cls.interpolate_string(value, context)
        number = coerce_number(interpolated)
        return interpolated if number is None else number
