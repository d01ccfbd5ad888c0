import pytest

from .tool import Field, ToolDescriptor


def echo(args):
  return f"print({args!r})"


def test_parameters_spec_required_fields_are_exactly_the_non_optional_ones():
  tool = ToolDescriptor(
    name="venmo_pay",
    description="Send a payment to another user.",
    renderer=echo,
    fields={
      "recipient": Field("string", "Recipient username"),
      "amount": Field("number", "Amount to send"),
      "note": Field("string", "Payment note", optional=True),
      "private": Field("boolean", "Hide from feed", default=False),
    },
  )

  assert tool.parameters_spec() == {
    "type": "object",
    "properties": {
      "recipient": {"type": "string", "description": "Recipient username"},
      "amount": {"type": "number", "description": "Amount to send"},
      "note": {"type": "string", "description": "Payment note"},
      "private": {"type": "boolean", "description": "Hide from feed", "default": False},
    },
    "required": ["recipient", "amount"],
  }


def test_spec_uses_function_declaration_shape():
  tool = ToolDescriptor(name="supervisor_show_profile", description="Show the profile.", renderer=echo)

  assert tool.spec() == {
    "type": "function",
    "function": {
      "name": "supervisor_show_profile",
      "description": "Show the profile.",
      "parameters": {"type": "object", "properties": {}, "required": []},
    },
  }


def test_array_and_enum_fields():
  tags = Field("array", "Labels", items=Field("string"))
  priority = Field("string", "Priority", enum=["low", "high"])

  assert tags.to_json_schema() == {"type": "array", "items": {"type": "string"}, "description": "Labels"}
  assert priority.to_json_schema() == {"type": "string", "enum": ["low", "high"], "description": "Priority"}


def test_render_applies_defaults():
  tool = ToolDescriptor(
    name="venmo_show_transactions",
    description="Show transactions.",
    renderer=lambda args: f"limit={args['limit']}",
    fields={"limit": Field("integer", default=10)},
  )

  assert tool.render({}) == "limit=10"
  assert tool.render({"limit": 3}) == "limit=3"


def test_invalid_tool_name():
  with pytest.raises(ValueError):
    ToolDescriptor(name="Bad Name!", description="", renderer=echo)


def test_invalid_field_type():
  with pytest.raises(ValueError):
    Field("date")
