"""
Example 002: Consume the Chat Stream Over HTTP

Starts from an already running server (``python -m playground``), initializes a task through
the world proxy and then reads the server-sent events of a chat run one frame at a time.

Usage:
  uv run --active examples/002_stream_client.py <task_id> "Find my most played song"

Set PLAYGROUND_URL when the server is not on http://127.0.0.1:8000.
"""

import asyncio
import json
import os
from sys import argv

import httpx

URL = os.environ.get("PLAYGROUND_URL", "http://127.0.0.1:8000")


async def main(task_id, message):
  async with httpx.AsyncClient(base_url=URL, timeout=None) as client:
    initialized = await client.post("/appworld", json={"action": "initialize", "task_id": task_id})
    cookie = initialized.json()["cookie"]

    headers = {
      "x-api-key": os.environ["GEMINI_API_KEY"],
      "x-enabled-services": "spotify",
    }
    body = {"messages": [{"role": "user", "content": message}], "taskId": task_id, "cookie": cookie}

    async with client.stream("POST", "/chat", json=body, headers=headers) as response:
      async for line in response.aiter_lines():
        if not line.startswith("data: "):
          continue
        event = json.loads(line[len("data: ") :])
        if event["type"] == "trace":
          print(f"[{event['entry']['type']}] {event['entry']['content']}")
        else:
          print(event)


asyncio.run(main(argv[1], argv[2]))
