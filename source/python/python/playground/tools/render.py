"""
Render tool arguments into Python snippets executed by the simulated world.

Every snippet prints its result so the world returns it as output. Authenticated calls log
in first and pass the access token along in the same snippet, since the world keeps no
state between two executions of a tool call batch other than what the snippet creates.
"""

from typing import Any, Mapping, Optional


def format_python_arg(value: Any) -> str:
  """Format a JSON-compatible value as a Python literal."""
  if isinstance(value, str):
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'
  # bool before int, bool is an int subclass
  if isinstance(value, bool):
    return "True" if value else "False"
  if isinstance(value, (int, float)):
    return repr(value)
  if value is None:
    return "None"
  if isinstance(value, (list, tuple)):
    return f"[{', '.join(format_python_arg(v) for v in value)}]"
  if isinstance(value, Mapping):
    entries = ", ".join(f"{format_python_arg(str(k))}: {format_python_arg(v)}" for k, v in value.items())
    return f"{{{entries}}}"
  return str(value)


def format_keyword_args(arguments: Optional[Mapping[str, Any]]) -> str:
  if not arguments:
    return ""
  return ", ".join(f"{k}={format_python_arg(v)}" for k, v in arguments.items() if v is not None)


def api_call(service: str, method: str, arguments: Optional[Mapping[str, Any]] = None) -> str:
  return f"print(apis.{service}.{method}({format_keyword_args(arguments)}))"


def authenticated_call(
  service: str,
  method: str,
  username: Any,
  password: Any,
  arguments: Optional[Mapping[str, Any]] = None,
) -> str:
  extra = format_keyword_args(arguments)
  api_args = f"access_token=access_token, {extra}" if extra else "access_token=access_token"
  return (
    f"login_result = apis.{service}.login(username={format_python_arg(username)}, "
    f"password={format_python_arg(password)})\n"
    f'access_token = login_result["access_token"]\n'
    f"print(apis.{service}.{method}({api_args}))"
  )


def pick(arguments: Mapping[str, Any], *names: str) -> dict:
  """Select the named arguments that were provided, preserving the given order."""
  return {name: arguments[name] for name in names if arguments.get(name) is not None}
