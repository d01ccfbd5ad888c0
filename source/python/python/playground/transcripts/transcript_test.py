import json

import pytest

from . import transcript
from .transcript import TranscriptConfig, log_raw_request, log_raw_response


@pytest.fixture
def config(tmp_path, monkeypatch):
  monkeypatch.setenv("PLAYGROUND_TRANSCRIPTS_DIR", str(tmp_path / "transcripts"))
  config = TranscriptConfig()
  monkeypatch.setattr(transcript, "_config", config)
  return config


def read_lines(config, name):
  with open(f"{config.directory}/{name}") as f:
    return [json.loads(line) for line in f]


def test_disabled_without_directory(monkeypatch, tmp_path):
  monkeypatch.delenv("PLAYGROUND_TRANSCRIPTS_DIR", raising=False)
  monkeypatch.setattr(transcript, "_config", None)

  log_raw_request({"messages": [{"role": "user", "content": "hi"}]}, "openai", "gpt-4o")

  assert not transcript.get_transcript_config().should_log()
  assert list(tmp_path.iterdir()) == []


def test_only_new_messages_are_written(config):
  first = {"system": "Be brief", "messages": [{"role": "user", "content": "hi"}]}
  log_raw_request(first, "anthropic", "claude-sonnet-4-5", "c1")
  log_raw_response({"content": [{"type": "text", "text": "hello"}]}, "anthropic", "claude-sonnet-4-5", "c1")

  second = {
    "system": "Be brief",
    "messages": [
      {"role": "user", "content": "hi"},
      {"role": "assistant", "content": [{"type": "text", "text": "hello"}]},
      {"role": "user", "content": "bye"},
    ],
  }
  log_raw_request(second, "anthropic", "claude-sonnet-4-5", "c1")

  lines = read_lines(config, "anthropic_c1_claude-sonnet-4-5.jsonl")
  assert [line["role"] for line in lines] == ["system", "user", "assistant", "user"]
  assert lines[-1]["content"] == "bye"


def test_gemini_shapes(config):
  request = {
    "systemInstruction": {"parts": [{"text": "Be brief"}]},
    "contents": [{"role": "user", "parts": [{"text": "hi"}]}],
  }
  response = {"candidates": [{"content": {"role": "model", "parts": [{"text": "hello"}]}}]}

  log_raw_request(request, "gemini", "models/gemini-3-flash-preview")
  log_raw_response(response, "gemini", "models/gemini-3-flash-preview")

  lines = read_lines(config, "gemini_none_models_gemini-3-flash-preview.jsonl")
  assert lines == [
    {"role": "system", "parts": [{"text": "Be brief"}]},
    {"role": "user", "parts": [{"text": "hi"}]},
    {"role": "model", "parts": [{"text": "hello"}]},
  ]
