from contextlib import contextmanager

import os
import logging.config
from typing import Optional, Protocol

DEFAULT_LOG_FORMAT = os.getenv(
  "DEFAULT_LOG_FORMAT", "%(asctime)s %(log_color)s%(levelname)5s%(reset)s %(name)-14s %(message)s"
)
FORMAT = DEFAULT_LOG_FORMAT + (" [%(pathname)s:%(lineno)d]" if os.getenv("PLAYGROUND_LOG_SHOW_SOURCE", False) else "")

LOG_LEVELS = {}

LEVELS: dict[str, int] = {
  "critical": logging.CRITICAL,
  "error": logging.ERROR,
  "warning": logging.WARNING,
  "info": logging.INFO,
  "debug": logging.DEBUG,
}

# loggers owned by this package, they inherit the default level unless overridden
PACKAGE_LOGGERS = ["agent", "model", "tool", "world", "http", "transcripts"]

# chatty third-party loggers, quiet unless explicitly overridden
THIRD_PARTY_LOGGERS = [
  "asyncio",
  "uvicorn",
  "uvicorn.error",
  "uvicorn.access",
  "uvicorn.asgi",
  "httpcore",
  "httpx",
  "anthropic",
  "openai",
]


def get_logging_config() -> dict[str, int | bool | dict | str | None]:
  # Disable logging if explicitly set to 0; otherwise, assume it's enabled
  if os.environ.get("PLAYGROUND_LOGGING", "1") == "0":
    return {
      "version": 1,
    }

  global LOG_LEVELS
  if not LOG_LEVELS:
    set_log_levels(os.environ.get("PLAYGROUND_LOG_LEVEL"))
  return create_logging_config(LOG_LEVELS, FORMAT)


def get_log_levels() -> dict[str, str]:
  global LOG_LEVELS
  if not LOG_LEVELS:
    LOG_LEVELS = create_log_levels(os.environ.get("PLAYGROUND_LOG_LEVEL"))
  return dict(LOG_LEVELS)


def set_log_level(module_name: str, level: str):
  """
  Set the log level for a specific module.
  """
  global LOG_LEVELS
  if not LOG_LEVELS:
    LOG_LEVELS = create_log_levels(None)
  LOG_LEVELS[module_name] = level.upper()
  apply_log_levels()


def set_log_levels(log_levels: Optional[str]):
  global LOG_LEVELS
  LOG_LEVELS = create_log_levels(log_levels)
  apply_log_levels()


def change_log_level(level: str, module: Optional[str] = None) -> str:
  """
  Apply ``level`` to one logger, or as the new default when no module is given.

  Setting the default drops every per-logger override. Returns the applied level name and
  raises ValueError for a level outside ``LEVELS``.
  """
  name = str(level).strip().upper()
  if name.lower() not in LEVELS:
    raise ValueError(f"Invalid level '{level}'. Must be one of: {list(LEVELS)}")
  if module:
    set_log_level(module, name)
  else:
    set_log_levels(name)
  return name


def apply_log_levels():
  """
  Push the current levels onto already created loggers so changes take effect at runtime.
  """
  default = LOG_LEVELS.get("default", "INFO")
  logging.getLogger().setLevel(default)
  for name in PACKAGE_LOGGERS:
    logging.getLogger(name).setLevel(LOG_LEVELS.get(name) or default)
  for name in THIRD_PARTY_LOGGERS:
    logging.getLogger(name).setLevel(LOG_LEVELS.get(name, "WARNING"))


def create_logging_config(levels: dict, log_format: str) -> dict[str, int | bool | dict | str | None]:
  loggers = {}
  for name in THIRD_PARTY_LOGGERS:
    loggers[name] = {
      "handlers": ["default"],
      "level": levels.get(name, "WARNING"),
      "propagate": False,
    }
  for name in PACKAGE_LOGGERS:
    loggers[name] = {
      "handlers": ["default"],
      "level": levels.get(name) or levels.get("default"),
      "propagate": False,
    }

  return {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
      "default": {
        "()": "playground.logs.formatter.Formatter",
        "format": log_format,
        "log_colors": {
          "DEBUG": "blue",
          "INFO": "green",
          "WARNING": "yellow",
          "WARN": "yellow",
          "ERROR": "red",
          "CRITICAL": "bold_red",
        },
      },
    },
    "handlers": {
      "default": {
        # loggers filter, the handler passes everything so runtime level changes apply
        "level": "DEBUG",
        "formatter": "default",
        "class": "logging.StreamHandler",
      },
    },
    "loggers": loggers,
    "root": {"level": levels.get("default"), "handlers": ["default"]},
  }


def create_log_levels(log_levels: Optional[str]) -> dict[str, str]:
  """
  Create log levels for python modules
  """
  result = {"default": "INFO"}
  if log_levels is not None:
    for level in log_levels.split(","):
      level = level.strip()
      if not level:
        continue
      key_value = level.split("=")
      if len(key_value) == 1:
        result["default"] = level.upper()
      else:
        result[key_value[0].strip()] = key_value[1].strip().upper()
  return result


_configured = False


def get_logger(logger_name):
  global _configured
  if not _configured:
    logging.config.dictConfig(get_logging_config())
    _configured = True
  return logging.getLogger(logger_name)


class LoggerAware(Protocol):
  logger: logging.Logger


class InfoContext(LoggerAware):
  @contextmanager
  def info(self, before_msg, after_msg):
    self.logger.info(before_msg)
    yield
    self.logger.info(after_msg)


class DebugContext(LoggerAware):
  @contextmanager
  def debug(self, before_msg, after_msg):
    self.logger.debug(before_msg)
    yield
    self.logger.debug(after_msg)
