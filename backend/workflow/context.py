"""Execution context and variable store threaded through one traversal."""

from collections.abc import MutableMapping
from dataclasses import dataclass, field, replace
from typing import Any, Iterator, Optional

from core.constants import TriggerEvent


class VariableStore(MutableMapping):
    """Mutable variables for one execution.

    A store has a shared backing dict plus an optional read-only scope
    layered on top (loop nodes put `loopIndex` / `loopItem` there).
    Scoped children share the backing dict with their parent, so a
    write made inside a loop iteration is visible to later iterations
    and to nodes that run after the loop.
    """

    def __init__(
        self,
        shared: Optional[dict[str, Any]] = None,
        scope: Optional[dict[str, Any]] = None,
    ):
        self._shared = shared if shared is not None else {}
        self._scope = dict(scope or {})

    def __getitem__(self, key: str) -> Any:
        if key in self._scope:
            return self._scope[key]
        return self._shared[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._shared[key] = value
        self._scope.pop(key, None)

    def __delitem__(self, key: str) -> None:
        found = False
        if key in self._scope:
            del self._scope[key]
            found = True
        if key in self._shared:
            del self._shared[key]
            found = True
        if not found:
            raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        yield from self._scope
        for key in self._shared:
            if key not in self._scope:
                yield key

    def __len__(self) -> int:
        return len(self._scope.keys() | self._shared.keys())

    def __repr__(self) -> str:
        return f"VariableStore({self.to_dict()!r})"

    def scoped(self, **values: Any) -> "VariableStore":
        """Child store with extra scoped values over the same shared dict."""
        return VariableStore(shared=self._shared, scope={**self._scope, **values})

    def to_dict(self) -> dict[str, Any]:
        """Flattened snapshot (scope wins over shared)."""
        return {**self._shared, **self._scope}


@dataclass
class ExecutionContext:
    """Everything a node can see while a workflow runs.

    Created fresh per triggered execution and discarded afterwards.
    """

    event: Optional[TriggerEvent]
    tenant_id: str
    data: Any = field(default_factory=dict)
    variables: VariableStore = field(default_factory=VariableStore)

    def __post_init__(self):
        if not isinstance(self.variables, VariableStore):
            self.variables = VariableStore(shared=self.variables)

    def child(self, data: Any, **scoped: Any) -> "ExecutionContext":
        """Context for a loop iteration: new data, scoped variables."""
        return replace(self, data=data, variables=self.variables.scoped(**scoped))
