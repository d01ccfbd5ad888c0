import json
import re

from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from ..agents.errors import ToolExecutionError, UninitializedSessionError
from ..logs import get_logger, InfoContext, DebugContext
from ..tools.registry import Service
from ..tools.render import api_call, authenticated_call
from .config import get_world_api_url, get_world_timeout
from .session import Session

ACTIONS = ("initialize", "execute", "evaluate")

SESSION_COOKIE_PATTERN = re.compile(r"GAESA[^;]*")


def extract_session_cookie(set_cookie_headers: List[str]) -> Optional[str]:
  """Return the ``GAESA=...`` name/value pair from a list of Set-Cookie headers."""
  cookie = None
  for header in set_cookie_headers:
    for part in header.split(","):
      match = SESSION_COOKIE_PATTERN.search(part.strip())
      if match:
        cookie = match.group(0)
  return cookie


def parse_output(output: Any) -> Any:
  if isinstance(output, str):
    try:
      return json.loads(output)
    except ValueError:
      return output
  return output


def format_output(data: Dict[str, Any]) -> str:
  """
  Turn an execute response into the text handed back to the model.

  String output is decoded as JSON when it can be: a decoded string is returned bare,
  anything else is pretty-printed. ``"No output"`` only stands for an absent output.
  """
  output = data.get("output")
  if output is None:
    return "No output"
  if not isinstance(output, str):
    return json.dumps(output, indent=2, ensure_ascii=False)

  parsed = parse_output(output)
  if isinstance(parsed, str):
    return parsed
  return json.dumps(parsed, indent=2, ensure_ascii=False)


def snapshot_value(output: Any) -> Any:
  """Decode one world context reading; empty output and Python errors read as None."""
  if not output:
    return None
  if isinstance(output, str) and ("Exception" in output or "Traceback" in output):
    return None
  return parse_output(output)


class WorldClient(InfoContext, DebugContext):
  """
  Client of the simulated-world HTTP API.

  A task is initialized once, the returned session cookie is then forwarded on every
  execute and evaluate call.
  """

  def __init__(
    self,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    client: Optional[httpx.AsyncClient] = None,
  ):
    self.logger = get_logger("world")
    self.base_url = (base_url or get_world_api_url()).rstrip("/")
    self.timeout = timeout if timeout is not None else get_world_timeout()
    self._client = client
    self._owns_client = client is None

  @property
  def client(self) -> httpx.AsyncClient:
    if self._client is None:
      self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0))
    return self._client

  async def aclose(self):
    if self._client is not None and self._owns_client:
      await self._client.aclose()
      self._client = None

  async def __aenter__(self):
    return self

  async def __aexit__(self, exc_type, exc, tb):
    await self.aclose()

  async def _post(
    self,
    action: str,
    task_id: str,
    code: Optional[str] = None,
    cookie: Optional[str] = None,
  ) -> httpx.Response:
    if action not in ACTIONS:
      raise ValueError(f"Unknown world action '{action}'. Must be one of: {', '.join(ACTIONS)}")

    headers = {"Content-Type": "application/json"}
    if cookie and action in ("execute", "evaluate"):
      headers["Cookie"] = cookie

    body: Dict[str, Any] = {"task_id": task_id}
    if action == "execute" and code:
      body["code"] = code

    self.logger.debug(f"POST {self.base_url}/{action} task_id={task_id}")
    return await self.client.post(f"{self.base_url}/{action}", json=body, headers=headers)

  async def initialize(self, task_id: str) -> Session:
    with self.info(f"Initializing world task '{task_id}'", f"Initialized world task '{task_id}'"):
      response = await self._post("initialize", task_id)
      if response.status_code >= 400:
        raise UninitializedSessionError(f"World initialize failed: HTTP {response.status_code} - {response.text}")

      cookie = extract_session_cookie(response.headers.get_list("set-cookie"))
      if not cookie:
        self.logger.warning(f"World initialize for task '{task_id}' returned no session cookie")
      return Session(task_id=task_id, cookie=cookie or "")

  async def _run(self, session: Session, instruction: str) -> Dict[str, Any]:
    response = await self._post("execute", session.task_id, code=instruction, cookie=session.cookie)

    if response.status_code >= 400:
      self.logger.warning(f"World execute returned HTTP {response.status_code} for task '{session.task_id}'")
      raise ToolExecutionError(f"HTTP {response.status_code} - {response.text}", status_code=response.status_code)

    try:
      data = response.json()
    except ValueError as e:
      raise ToolExecutionError(f"Invalid world response: {response.text}") from e

    if data.get("error"):
      details = data.get("details")
      raise ToolExecutionError(f"{data['error']} - {details}" if details else str(data["error"]))

    return data

  async def execute(self, session: Session, instruction: str) -> str:
    """
    Run ``instruction`` in the task's world and return its output as text.

    Raises ToolExecutionError when the world rejects the request or reports an error.
    Transport failures propagate as httpx errors.
    """
    return format_output(await self._run(session, instruction))

  async def _read(self, session: Session, instruction: str) -> Any:
    try:
      data = await self._run(session, instruction)
    except ToolExecutionError as e:
      self.logger.warning(f"World context call failed for task '{session.task_id}': {e.message}")
      return None
    return snapshot_value(data.get("output"))

  async def context(self, session: Session, services: Sequence[Service]) -> Dict[str, Any]:
    """
    Snapshot what the user of the task currently has in each of ``services``.

    Reads the supervisor profile and account passwords, then logs in to every service
    with its password and runs the service's snapshot views. Services without a password
    or whose login fails carry an ``error`` instead of data. Transport failures while
    reading the profile or the passwords propagate as httpx errors.
    """
    with self.info(
      f"Loading world context of task '{session.task_id}' for {len(services)} services",
      f"Loaded world context of task '{session.task_id}'",
    ):
      profile = await self._read(session, api_call("supervisor", "show_profile"))
      credentials = await self._read(session, api_call("supervisor", "show_account_passwords"))

      passwords = {}
      if isinstance(credentials, list):
        passwords = {c.get("account_name"): c.get("password") for c in credentials if isinstance(c, dict)}

      snapshots = []
      for service in services:
        snapshot = await self._service_context(session, service, profile, passwords)
        if snapshot["data"] or "error" in snapshot:
          snapshots.append(snapshot)

      return {"profile": profile, "credentials": credentials, "services": snapshots}

  async def _service_context(
    self,
    session: Session,
    service: Service,
    profile: Any,
    passwords: Dict[str, str],
  ) -> Dict[str, Any]:
    snapshot: Dict[str, Any] = {"name": service.name, "displayName": service.display_name, "data": {}}

    password = passwords.get(service.name)
    if password is None:
      snapshot["error"] = "No credentials found"
      return snapshot

    username = profile.get(service.login_field, "") if isinstance(profile, dict) else ""
    try:
      for index, view in enumerate(service.snapshot):
        instruction = authenticated_call(service.name, view.method, username, password, view.arguments)
        try:
          output = (await self._run(session, instruction)).get("output")
        except ToolExecutionError as e:
          self.logger.warning(f"World context view '{service.name}.{view.method}' failed: {e.message}")
          output = None

        # the first view also proves the login worked
        if index == 0 and isinstance(output, str) and "Exception" in output:
          snapshot["error"] = "Login failed"
          break
        snapshot["data"][view.key] = snapshot_value(output)
    except httpx.HTTPError as e:
      self.logger.error(f"World context for service '{service.name}' failed: {e}")
      snapshot["error"] = str(e) or type(e).__name__

    return snapshot

  async def evaluate(self, session: Session) -> Dict[str, Any]:
    response = await self._post("evaluate", session.task_id, cookie=session.cookie)
    response.raise_for_status()
    data = response.json()
    output = data.get("output")
    success = data.get("success")
    if success is None:
      success = isinstance(output, str) and "success" in output
    return {"success": bool(success), "output": output}

  async def proxy(
    self,
    action: str,
    task_id: str,
    code: Optional[str] = None,
    cookie: Optional[str] = None,
  ) -> Tuple[int, Dict[str, Any]]:
    """
    Forward one world action and shape the answer for browser clients.

    Returns the HTTP status and a body with ``output``, ``parsed_output`` and, depending on
    the action, ``cookie`` or ``success``.
    """
    response = await self._post(action, task_id, code=code, cookie=cookie)

    if response.status_code >= 400:
      return response.status_code, {
        "error": f"AppWorld API error: {response.status_code}",
        "details": response.text,
      }

    data = response.json()
    result: Dict[str, Any] = {}

    if "output" in data:
      result["output"] = data["output"]
      result["parsed_output"] = parse_output(data["output"])

    if action == "initialize":
      session_cookie = extract_session_cookie(response.headers.get_list("set-cookie"))
      if session_cookie:
        result["cookie"] = session_cookie

    if action == "evaluate":
      success = data.get("success")
      if success is None:
        output = data.get("output")
        success = isinstance(output, str) and "success" in output
      result["success"] = success

    if data.get("error"):
      result["error"] = data["error"]

    return response.status_code, result
