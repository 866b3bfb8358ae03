"""
Rule Definition Schema - Validated shape of rule definitions.

A rule definition is the configuration value the logic description uses to
declare when a fact holds:
- A boolean: the rule is always that value
- A string: the rule looks that fact up in the environment
- A list: every entry must hold (ALL)
- An object with "any" and/or "all" lists (ANY entries OR-ed, ALL entries
  AND-ed, both parts AND-ed together), plus an optional "name"

Definitions are validated against this schema up front, so a malformed
definition is reported when the rule is parsed, never while it is evaluated.
"""

from __future__ import annotations
from typing import Any, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    RootModel,
    StrictBool,
    StrictStr,
    ValidationError,
    model_validator,
)

from .errors import InvalidRuleDefinitionError


class RuleDefinition(RootModel[Union[StrictBool, StrictStr, List["RuleDefinition"], "RuleObject"]]):
    """A validated rule definition (one node of the definition tree)."""


class RuleObject(BaseModel):
    """The object form of a rule definition."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    any_of: Optional[Union[StrictStr, List[RuleDefinition]]] = None
    all_of: Optional[Union[StrictStr, List[RuleDefinition]]] = None
    name: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _rename_keys(cls, data: Any) -> Any:
        # "any"/"all" shadow builtins, so they are stored under other names
        if isinstance(data, dict):
            data = dict(data)
            if "any" in data:
                data["any_of"] = data.pop("any")
            if "all" in data:
                data["all_of"] = data.pop("all")
        return data

    @model_validator(mode="after")
    def _require_list(self) -> "RuleObject":
        if self.any_of is None and self.all_of is None:
            raise ValueError("rule object needs an \"any\" or \"all\" entry")
        return self


RuleDefinition.model_rebuild()
RuleObject.model_rebuild()


def validate_rule_definition(definition: Any) -> RuleDefinition:
    """
    Validate a raw definition against the schema.

    Raises:
        InvalidRuleDefinitionError: if the definition has any other shape
    """
    try:
        return RuleDefinition.model_validate(definition)
    except ValidationError as e:
        raise InvalidRuleDefinitionError(
            f"Invalid rule definition {definition!r}: {e}",
            definition=definition,
        ) from e
