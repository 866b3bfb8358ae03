"""
Engine errors.

Both errors are programmer/configuration errors. They are raised from the
call that would have caused them and leave no partial state behind.
"""

from __future__ import annotations
from typing import Any


class RuleError(Exception):
    """Base class for rule engine errors."""


class InvalidRuleDefinitionError(RuleError):
    """Raised when a rule definition does not match the definition schema."""

    def __init__(self, message: str, definition: Any = None):
        self.definition = definition
        super().__init__(message)


class CircularDependencyError(RuleError):
    """Raised when binding a rule would make a fact depend on itself."""

    def __init__(self, name: str, path: list[str] | None = None):
        self.name = name
        self.path = path or [name]
        chain = " -> ".join(self.path)
        super().__init__(
            f"Not making a circular dependency (cannot bind rule referring to "
            f"\"{name}\" under the name \"{name}\": {chain})"
        )
