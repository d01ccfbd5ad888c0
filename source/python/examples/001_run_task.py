"""
Example 001: Run One Task In-Process

Initializes a simulated-world task, runs the agent loop against it and prints every trace
event as it happens, then asks the world to evaluate the outcome.

Usage:
  GEMINI_API_KEY=... \
  uv run --active examples/001_run_task.py <task_id> "What is my Venmo balance?"

  ANTHROPIC_API_KEY=... PROVIDER=anthropic MODEL=claude-sonnet-4-5 \
  uv run --active examples/001_run_task.py <task_id> "Pay back Alice for dinner"

Write provider transcripts with:
  PLAYGROUND_TRANSCRIPTS_DIR=/tmp/transcripts
"""

import asyncio
import os
from sys import argv

from playground import AgentLoop, Model, RunState, WorldClient, get_logger
from playground.models import UserTurn
from playground.tools import default_registry, generate_system_prompt

logger = get_logger("agent")

API_KEYS = {"gemini": "GEMINI_API_KEY", "anthropic": "ANTHROPIC_API_KEY", "openai": "OPENAI_API_KEY"}


async def main(task_id, message):
  provider = os.environ.get("PROVIDER", "gemini")
  model = Model(os.environ.get("MODEL"), provider=provider, api_key=os.environ.get(API_KEYS[provider]))
  registry = default_registry()
  services = ["venmo", "gmail", "phone"]

  async with WorldClient() as world:
    session = await world.initialize(task_id)
    loop = AgentLoop(
      model,
      registry.select(services),
      world,
      session,
      system_instructions=generate_system_prompt(registry, services),
    )

    async for event in loop.run(RunState(history=[UserTurn(message)])):
      logger.info(event.to_dict())

    evaluation = await world.evaluate(session)
    logger.info(f"Evaluation: {evaluation}")

  await model.aclose()


asyncio.run(main(argv[1], argv[2]))
