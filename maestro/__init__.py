""" Emulator for Maestro liquid-handling applications.

Importing the package loads `maestro.ini`/`maestro.json` (see `maestro.config`) and configures the
`maestro` logger from it. Call `configure` to apply another Config at runtime.
"""

import datetime
import logging
from pathlib import Path
from typing import Optional, Union

from maestro.__version__ import __version__
from maestro.config import Config, load_config

CONFIG_FILE_NAME = "maestro"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

CONFIG = load_config(CONFIG_FILE_NAME, create_default=False)

logger = logging.getLogger("maestro")


def project_root() -> Path:
  """ The directory holding the `maestro` package. """
  return Path(__file__).parent.parent


def log_file_name(day: Optional[datetime.date] = None) -> str:
  day = day if day is not None else datetime.date.today()
  return f"maestro-{day.strftime('%Y%m%d')}.log"


def setup_logger(log_dir: Optional[Union[Path, str]], level: int):
  """ Set the level of the `maestro` logger and point its file handler at `log_dir`.

  Handlers from a previous call are closed and replaced, so calling this repeatedly never writes
  a record twice.

  Args:
    log_dir: directory for the dated log file, created if missing. `None` disables file logging.
    level: level of the `maestro` logger.
  """

  logger.setLevel(level)

  for handler in list(logger.handlers):
    handler.close()
    logger.removeHandler(handler)

  if log_dir is None:
    return

  log_dir = Path(log_dir)
  log_dir.mkdir(parents=True, exist_ok=True)
  fh = logging.FileHandler(log_dir / log_file_name())
  fh.setLevel(logging.NOTSET)  # the logger level filters
  fh.setFormatter(logging.Formatter(LOG_FORMAT))
  logger.addHandler(fh)


def configure(cfg: Config):
  """ Apply `cfg` to the package: logging now, emulation limits for emulators created later. """
  global CONFIG  # pylint: disable=global-statement
  CONFIG = cfg
  setup_logger(cfg.logging.log_dir, cfg.logging.level)


configure(CONFIG)

# pylint: disable=wrong-import-position
from maestro.builder import build
from maestro.emulator import simulate
from maestro.query import ApplicationQuery
