import re

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

MISSING = object()

JSON_SCHEMA_TYPES = {"string", "number", "integer", "boolean", "array", "object"}


@dataclass(frozen=True)
class Field:
  """
  One named input of a tool.

  A field with a default is optional. ``items`` describes array elements and ``enum``
  restricts a string field to a fixed set of values.
  """

  type: str = "string"
  description: Optional[str] = None
  optional: bool = False
  default: Any = MISSING
  enum: Optional[Sequence[str]] = None
  items: Optional["Field"] = None

  def __post_init__(self):
    if self.type not in JSON_SCHEMA_TYPES:
      raise ValueError(f"Unsupported field type '{self.type}'")

  @property
  def required(self) -> bool:
    return not self.optional and self.default is MISSING

  def to_json_schema(self) -> dict:
    schema: Dict[str, Any] = {"type": self.type}
    if self.enum:
      schema["enum"] = list(self.enum)
    if self.type == "array":
      schema["items"] = (self.items or Field()).to_json_schema()
    if self.description:
      schema["description"] = self.description
    if self.default is not MISSING:
      schema["default"] = self.default
    return schema


@dataclass(frozen=True)
class ToolDescriptor:
  """
  A tool the model can call.

  ``renderer`` turns the model's arguments into an instruction the world executor runs.
  Arguments are not validated here, renderers read what they need and fall back to
  the field defaults.
  """

  name: str
  description: str
  renderer: Callable[[Mapping[str, Any]], str]
  fields: Mapping[str, Field] = field(default_factory=dict)

  def __post_init__(self):
    if re.match(r"^[a-z0-9_-]+$", self.name) is None:
      raise ValueError("Tool name may only contain [a-z0-9_-] characters")

  def parameters_spec(self) -> dict:
    return {
      "type": "object",
      "properties": {name: f.to_json_schema() for name, f in self.fields.items()},
      "required": [name for name, f in self.fields.items() if f.required],
    }

  def spec(self) -> dict:
    return {
      "type": "function",
      "function": {"name": self.name, "description": self.description, "parameters": self.parameters_spec()},
    }

  def with_defaults(self, arguments: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    merged = {name: f.default for name, f in self.fields.items() if f.default is not MISSING}
    merged.update(arguments or {})
    return merged

  def render(self, arguments: Optional[Mapping[str, Any]] = None) -> str:
    return self.renderer(self.with_defaults(arguments))
