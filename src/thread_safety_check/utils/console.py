"""
Central Logging and Console Utilities.

Diagnostics of the package go to the ``thread_safety_check`` logger through
the Python standard `logging` library. Importing the package configures
nothing: call `configure_logging` (or `set_console`) to render them with a
`rich` `RichHandler`. Without it, warnings reach the standard library's
last-resort handler and success messages are dropped.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

# Between INFO and WARNING
SUCCESS_LEVEL_NUM = 25
logging.addLevelName(SUCCESS_LEVEL_NUM, "SUCCESS")

LOGGER_NAME = "thread_safety_check"

_THEME = Theme({"logging.level.success": "green"})

logger = logging.getLogger(LOGGER_NAME)

_console: Optional[Console] = None


def configure_logging(new_console: Optional[Console] = None) -> Console:
  """
  Routes the package logger through a RichHandler bound to a console.

  Replaces a RichHandler installed by an earlier call. The root logger is not touched.

  Args:
      new_console (Optional[Console]): Console to render to. A themed stdout console by default.

  Returns:
      Console: The console now receiving the package's log records.
  """
  global _console
  _console = new_console if new_console is not None else Console(theme=_THEME)

  _remove_rich_handlers()
  logger.addHandler(
    RichHandler(
      console=_console,
      show_time=False,
      omit_repeated_times=False,
      show_path=False,
      markup=True,
      rich_tracebacks=True,
    )
  )
  logger.setLevel(logging.INFO)
  return _console


def set_console(new_console: Console) -> None:
  """
  Injects a specific console instance, e.g. a recording one in tests.

  Args:
      new_console (Console): The configured Rich console to log to.
  """
  configure_logging(new_console)


def reset_console() -> None:
  """
  Removes the handler installed by `configure_logging` and restores the logger level.
  """
  global _console
  _console = None
  _remove_rich_handlers()
  logger.setLevel(logging.NOTSET)


def get_console() -> Optional[Console]:
  return _console


def _remove_rich_handlers() -> None:
  for handler in list(logger.handlers):
    if isinstance(handler, RichHandler):
      logger.removeHandler(handler)


def log_success(msg: str) -> None:
  logger.log(SUCCESS_LEVEL_NUM, f"✅ {msg}", extra={"markup": True})


def log_warning(msg: str) -> None:
  """
  Logs a warning message on the package logger.

  Args:
      msg (str): The message content.
  """
  logger.warning(f"⚠️  {msg}", extra={"markup": True})
