"""
Config module. Looks for a `maestro.ini` or `maestro.json` file in the current directory and its
parents. Without one, the default Config is used, and can be written next to the `.git` directory
(or in the current directory when there is none).
"""
from pathlib import Path
from typing import Optional, Union

from maestro.config.config import Config
from maestro.config.files import read_config_file, write_config_file
from maestro.config.formats.ini_config import IniLoader, IniSaver
from maestro.config.formats.json_config import JsonLoader, JsonSaver

DEFAULT_LOADERS = [IniLoader(), JsonLoader()]
DEFAULT_SAVERS = [IniSaver(), JsonSaver()]


def get_config_file(base_name: str, cur_dir: Optional[Union[str, Path]] = None) -> Optional[Path]:
  """ Find `base_name` with any known extension in `cur_dir` (default: cwd) or its parents.

  Returns:
    The path of the closest config file, or `None`.
  """

  start = Path(cur_dir) if cur_dir is not None else Path.cwd()
  for directory in (start, *start.parents):
    for loader in DEFAULT_LOADERS:
      candidate = directory / f"{base_name}.{loader.extension}"
      if candidate.exists():
        return candidate
  return None


def get_dir_to_create_config_file_in() -> Path:
  """ The closest parent directory holding a `.git` directory, or the current directory. """
  cur_dir = Path.cwd()
  for parent in cur_dir.parents:
    if (parent / ".git").exists():
      return parent
  return cur_dir


def load_config(base_file_name: str, create_default: bool = False,
                create_module_level: bool = True) -> Config:
  """ Load the Config for `base_file_name`.

  Args:
    base_file_name: file name of the config, without extension.
    create_default: write a default config file (INI) when none is found.
    create_module_level: create that file at the project root instead of the current directory.
  """

  config_path = get_config_file(base_file_name)
  if config_path is not None:
    return read_config_file(config_path, DEFAULT_LOADERS)

  cfg = Config()
  if create_default:
    create_dir = get_dir_to_create_config_file_in() if create_module_level else Path.cwd()
    write_config_file(create_dir / f"{base_file_name}.{DEFAULT_SAVERS[0].extension}", cfg,
                      DEFAULT_SAVERS)
  return cfg
