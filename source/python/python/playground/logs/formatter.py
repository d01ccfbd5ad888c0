import copy
from datetime import datetime, UTC

from colorlog import ColoredFormatter

GREY = "\033[38;5;245m"
RESET = "\033[0m"

# level names shortened to fit the five character level column
SHORT_LEVEL_NAMES = {"WARNING": "WARN"}


def utc_timestamp(created: float) -> str:
  """Render a record's creation time as ISO-8601 UTC with milliseconds, e.g. ``2025-01-31T09:15:02.123Z``."""
  return datetime.fromtimestamp(created, UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def grey(text: str) -> str:
  return f"{GREY}{text}{RESET}"


class Formatter(ColoredFormatter):
  """
  Colored one-line records with a grey UTC timestamp and logger name.

  Styling happens on a copy, other handlers of the same record see it unchanged.
  """

  def format(self, record):
    styled = copy.copy(record)
    styled.levelname = SHORT_LEVEL_NAMES.get(record.levelname, record.levelname)
    styled.name = grey(record.name.replace(".", "::"))
    return super().format(styled)

  def formatTime(self, record, datefmt=None) -> str:
    try:
      if datefmt:
        return grey(datetime.fromtimestamp(record.created, UTC).strftime(datefmt))
      return grey(utc_timestamp(record.created))
    except (TypeError, ValueError, OverflowError):
      return str(record.created)
