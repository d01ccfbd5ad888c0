"""
Provider transcript logging.

Transcripts show what's sent to a provider (input) and what comes back (output), with one
file per conversation in JSONL format.

Environment Variables:
  PLAYGROUND_TRANSCRIPTS_DIR=/path  - Directory for per-conversation transcript files
    • Files are named: {provider}_{conversation}_{model}.jsonl
    • Uses "none" as placeholder for a missing conversation
    • Directory is created if it doesn't exist
    • Each line is one complete message in the provider's native shape

Examples:
  PLAYGROUND_TRANSCRIPTS_DIR=/tmp/transcripts python -m playground

  # Watch conversations in real-time
  tail -f /tmp/transcripts/*.jsonl | jq '.'
"""

import json
import os
from typing import Any, Dict, List, Optional

from ..logs import get_logger


class TranscriptConfig:
  def __init__(self):
    self.directory = os.environ.get("PLAYGROUND_TRANSCRIPTS_DIR")

    # Key: f"{provider}_{conversation}_{model}", Value: count of messages output
    self.message_counts: Dict[str, int] = {}

  def should_log(self) -> bool:
    return self.directory is not None


_config: Optional[TranscriptConfig] = None


def get_transcript_config() -> TranscriptConfig:
  global _config
  if _config is None:
    _config = TranscriptConfig()
  return _config


def _safe(value: Optional[str]) -> str:
  return (value or "none").replace("/", "_").replace("\\", "_")


def _conversation_key(provider: str, model_name: str, conversation: Optional[str]) -> str:
  return f"{_safe(provider)}_{_safe(conversation)}_{_safe(model_name)}"


def _get_conversation_file_path(
  config: TranscriptConfig,
  provider: str,
  model_name: str,
  conversation: Optional[str] = None,
) -> Optional[str]:
  if not config.directory:
    return None
  return os.path.join(config.directory, f"{_conversation_key(provider, model_name, conversation)}.jsonl")


def _output(text: str, path: Optional[str], config: TranscriptConfig) -> None:
  if not path:
    return
  try:
    os.makedirs(config.directory, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
      f.write(text)
      f.write("\n")
  except OSError as e:
    get_logger("transcripts").error(f"Failed to write to conversation transcript file {path}: {e}")


def _request_messages(payload: Dict[str, Any]) -> List[Any]:
  messages: List[Any] = []

  # Anthropic keeps the system prompt in a separate field, Gemini in systemInstruction
  if payload.get("system"):
    messages.append({"role": "system", "content": payload["system"]})
  if payload.get("systemInstruction"):
    messages.append({"role": "system", **payload["systemInstruction"]})

  messages.extend(payload.get("messages") or [])
  messages.extend(payload.get("contents") or [])
  return messages


def _response_message(response: Dict[str, Any]) -> Optional[Dict[str, Any]]:
  if response.get("choices"):
    message = response["choices"][0].get("message")
    return dict(message) if message else None

  if response.get("candidates"):
    content = response["candidates"][0].get("content")
    return dict(content) if content else None

  if "content" in response:
    return {"role": "assistant", "content": response.get("content")}

  return None


def log_raw_request(
  payload: Dict[str, Any],
  provider: str,
  model_name: str,
  conversation: Optional[str] = None,
) -> None:
  """
  Log the messages of an outbound request that were not logged before.

  Requests resend the whole history, so only the messages past the last logged count are
  written.
  """
  config = get_transcript_config()
  if not config.should_log():
    return

  key = _conversation_key(provider, model_name, conversation)
  path = _get_conversation_file_path(config, provider, model_name, conversation)

  messages = _request_messages(payload)
  already_output = config.message_counts.get(key, 0)
  for message in messages[already_output:]:
    _output(json.dumps(message, ensure_ascii=False, default=str), path, config)

  config.message_counts[key] = len(messages)


def log_raw_response(
  response: Dict[str, Any],
  provider: str,
  model_name: str,
  conversation: Optional[str] = None,
) -> None:
  """Log the model message of a provider response (OpenAI, Anthropic or Gemini shape)."""
  config = get_transcript_config()
  if not config.should_log():
    return

  message = _response_message(response)
  if message is None:
    return

  key = _conversation_key(provider, model_name, conversation)
  path = _get_conversation_file_path(config, provider, model_name, conversation)
  _output(json.dumps(message, ensure_ascii=False, default=str), path, config)
  config.message_counts[key] = config.message_counts.get(key, 0) + 1
