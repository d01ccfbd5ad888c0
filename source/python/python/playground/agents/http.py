"""
HTTP surface of the playground.

Runs the agent loop for chat requests, proxies the simulated world for browser clients and
exposes the tool catalog and runtime log levels.
"""

import asyncio
import os

from typing import Any, Callable, Dict, Optional, Set

import httpx
import uvicorn
from fastapi import FastAPI, Depends, HTTPException, Request, Security, status
from fastapi.responses import JSONResponse, StreamingResponse
from fastapi.security.api_key import APIKeyQuery

from ..logs.logs import InfoContext, change_log_level, get_logger, get_logging_config, get_log_levels, LEVELS
from ..models.model import Model
from ..tools.catalog import default_preset, default_registry, generate_system_prompt
from ..tools.registry import ToolRegistry
from ..world.client import ACTIONS, WorldClient
from ..world.session import Session
from .errors import ConfigurationError
from .loop import AgentLoop
from .request import RunRequest, parse_services
from .state import RunState
from .stream import EventStream
from .summary import collect

DEFAULT_HOST = os.environ.get("DEFAULT_HOST_HTTP", "0.0.0.0")
DEFAULT_PORT = int(os.environ.get("DEFAULT_PORT_HTTP", "8000"))


def parse_listen_address(listen_address: str) -> tuple[str, int]:
  host, separator, port = listen_address.strip().rpartition(":")
  if not separator or not port:
    raise ValueError(f"Invalid listen_address: {listen_address}")
  try:
    return host or DEFAULT_HOST, int(port)
  except ValueError:
    raise ValueError(f"Invalid listen_address: {listen_address}")


async def read_json_object(request: Request) -> Dict[str, Any]:
  try:
    body = await request.json()
  except ValueError as e:
    raise ConfigurationError("Request body must be valid JSON") from e
  if not isinstance(body, dict):
    raise ConfigurationError("Request body must be a JSON object")
  return body


class HttpServer(InfoContext):
  # models are closed once their producer finishes, which can outlive the response
  _closing_tasks: Set[asyncio.Task] = set()

  def __init__(
    self,
    listen_address=f"{DEFAULT_HOST}:{DEFAULT_PORT}",
    app: FastAPI = None,
    registry: Optional[ToolRegistry] = None,
    world: Optional[WorldClient] = None,
    model_factory: Callable[..., Model] = Model,
  ):
    self.logger = get_logger("http")
    self.host, self.port = parse_listen_address(listen_address)
    self.registry = registry or default_registry()
    self.world = world or WorldClient()
    self.model_factory = model_factory

    if not app:
      # Only apply API key validation if API_KEY environment variable is set
      dependencies = [Depends(validate_api_key)] if os.environ.get("API_KEY") else []
      self.app = FastAPI(dependencies=dependencies)
    else:
      self.app = app

    self._setup_routes()

  def _setup_routes(self):
    @self.app.exception_handler(ConfigurationError)
    async def reject(request: Request, e: ConfigurationError):
      self.logger.warning(f"Rejected {request.method} {request.url.path}: {e.message}")
      return JSONResponse({"error": e.message, "kind": e.kind}, status_code=400)

    @self.app.post("/chat")
    async def chat(request: Request, stream: bool = True):
      """
      Run the agent for one user turn.

      Streams ``text/event-stream`` frames by default, ``?stream=false`` returns the final
      summary as a single JSON object.
      """
      body = await read_json_object(request)
      try:
        run_request = RunRequest.from_http(request.headers, body).validate()
        model = self.model_factory(
          name=run_request.model_name,
          provider=run_request.provider,
          api_key=run_request.api_key,
        )
      except ConfigurationError as e:
        self.logger.warning(f"Rejected chat request: {e.message}")
        return JSONResponse({"error": e.message, "kind": e.kind}, status_code=400)

      tools = self.registry.select(run_request.enabled_services)
      session = run_request.session
      loop = AgentLoop(model, tools, self.world, session, system_instructions=run_request.system_prompt)
      event_stream = EventStream(loop, RunState(history=list(run_request.history)))

      self.logger.info(
        f"Chat request for task '{session.task_id}' with {run_request.provider} '{run_request.model_name}' "
        f"and {len(tools)} tools (stream={stream})"
      )

      if not stream:
        try:
          summary = await collect(event_stream.events())
        finally:
          await model.aclose()
        return JSONResponse(summary.to_dict())

      event_stream.start()
      self._close_when_done(event_stream, model)
      return StreamingResponse(
        event_stream.frames(request.is_disconnected),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
      )

    @self.app.post("/appworld")
    async def appworld(request: Request):
      """
      Forward an action to the simulated world.

      Request body: ``{"action": "initialize" | "execute" | "evaluate", "task_id": "...",
      "code": "...", "cookie": "..."}``
      """
      data = await read_json_object(request)
      action = data.get("action")
      task_id = data.get("task_id")
      if not action or not task_id:
        return JSONResponse({"error": "Missing required fields: action, task_id"}, status_code=400)
      if action not in ACTIONS:
        return JSONResponse({"error": f"Unknown action '{action}'. Must be one of: {list(ACTIONS)}"}, status_code=400)

      try:
        status_code, result = await self.world.proxy(action, task_id, code=data.get("code"), cookie=data.get("cookie"))
      except (httpx.HTTPError, ValueError) as e:
        self.logger.error(f"World proxy error: {e}")
        return JSONResponse({"error": "Proxy error", "details": str(e)}, status_code=500)

      return JSONResponse(result, status_code=status_code)

    @self.app.post("/world-context")
    async def world_context(request: Request):
      """
      Snapshot the task's world for the enabled services.

      Request body: ``{"taskId": "...", "cookie": "...", "enabledServices": ["gmail", ...]}``.
      Every registered service is included when ``enabledServices`` is absent, unknown names
      are skipped.
      """
      data = await read_json_object(request)
      session = Session(task_id=data.get("taskId") or "", cookie=data.get("cookie") or "")
      if not session.is_valid():
        return JSONResponse({"error": "Missing taskId or cookie"}, status_code=400)

      names = data.get("enabledServices")
      if names is None:
        names = self.registry.service_names()
      if not isinstance(names, list):
        raise ConfigurationError("enabledServices must be a list of service names")
      services = [self.registry.service(name) for name in names if isinstance(name, str)]

      try:
        return await self.world.context(session, [s for s in services if s is not None])
      except httpx.HTTPError as e:
        self.logger.error(f"World context error for task '{session.task_id}': {e}")
        return JSONResponse({"error": "Failed to load world context", "details": str(e)}, status_code=500)

    @self.app.get("/services")
    async def get_services():
      return {
        "services": [service.to_dict() for service in self.registry.services],
        "preset": default_preset(self.registry),
      }

    @self.app.get("/tools")
    async def get_tools(services: Optional[str] = None):
      tool_set = self.registry.select(parse_services(services))
      return {"tools": [tool.spec() for tool in tool_set.declarations()]}

    @self.app.get("/system-prompt")
    async def get_system_prompt(services: Optional[str] = None):
      names = parse_services(services)
      if names is None:
        names = self.registry.service_names()
      return {"systemPrompt": generate_system_prompt(self.registry, names)}

    @self.app.get("/logs/levels")
    async def get_logging_levels():
      return {"levels": get_log_levels(), "available_levels": list(LEVELS)}

    @self.app.post("/logs/levels")
    async def set_logging_levels(request: Request):
      """Change the default level with ``{"level": "debug"}``, one logger's by adding ``"module"``."""
      data = await read_json_object(request)
      if not data.get("level"):
        raise ConfigurationError("'level' is required")

      module = data.get("module")
      try:
        level = change_log_level(data["level"], module)
      except ValueError as e:
        raise ConfigurationError(str(e)) from e

      self.logger.info(f"Log level of '{module or 'default'}' is now {level}")
      return {"module": module or "default", "level": level, "levels": get_log_levels()}

  def _close_when_done(self, event_stream: EventStream, model: Model):
    async def close():
      try:
        await event_stream.wait()
      finally:
        await model.aclose()

    task = asyncio.create_task(close())
    HttpServer._closing_tasks.add(task)
    task.add_done_callback(HttpServer._closing_tasks.discard)

  async def serve(self):
    self.logger.info(f"Starting http server at {self.host}:{self.port}")
    config = uvicorn.Config(self.app, host=self.host, port=self.port, log_config=get_logging_config(), access_log=True)
    server = uvicorn.Server(config)
    try:
      await server.serve()
    finally:
      await self.world.aclose()


def validate_api_key(api_key: str = Security(APIKeyQuery(name="api_key", auto_error=False))) -> str:
  """
  Validate API key for HTTP requests.

  Note: This is only applied when the API_KEY environment variable is set.
  """
  expected = os.environ.get("API_KEY")
  if not expected:
    # No API_KEY configured, allow access
    return None
  if api_key != expected:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or missing API key")
  return expected


def main():
  asyncio.run(HttpServer().serve())
