"""
Task Registry: maps connector node kinds to their implementations.

Tasks are instantiated once per registry with the shared
TaskDependencies (credential store, email sender, settings, transport).
"""

from typing import Dict, Optional, Type

from core.constants import NodeKind
from tasks.base_task import BaseTask, TaskDependencies
from tasks.implementations.ai_task import AI_TASK_TYPES
from tasks.implementations.email_task import EMAIL_TASK_TYPES
from tasks.implementations.http_task import HTTP_TASK_TYPES
from tasks.implementations.messaging_task import MESSAGING_TASK_TYPES


class TaskRegistry:
    """Central registry for all connector task implementations."""

    def __init__(self, deps: TaskDependencies):
        self.deps = deps
        self._tasks: Dict[NodeKind, Type[BaseTask]] = {}
        self._instances: Dict[NodeKind, BaseTask] = {}
        self._register_builtin_tasks()

    def _register_builtin_tasks(self):
        """Register all built-in connector tasks."""
        for group in (HTTP_TASK_TYPES, EMAIL_TASK_TYPES, AI_TASK_TYPES, MESSAGING_TASK_TYPES):
            for task_type, task_class in group.items():
                self.register(task_type, task_class)

    def register(self, task_type: NodeKind, task_class: Type[BaseTask]):
        """Register (or replace) a task type."""
        self._tasks[task_type] = task_class
        self._instances.pop(task_type, None)

    def get(self, task_type: NodeKind) -> Optional[Type[BaseTask]]:
        """Get a task class by node kind."""
        return self._tasks.get(task_type)

    def get_instance(self, task_type: NodeKind) -> Optional[BaseTask]:
        """Shared task instance bound to this registry's dependencies."""
        if task_type not in self._instances:
            task_class = self.get(task_type)
            if task_class is None:
                return None
            self._instances[task_type] = task_class(self.deps)
        return self._instances[task_type]

    @property
    def available_types(self) -> list:
        return list(self._tasks.keys())
