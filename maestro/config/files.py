""" Reading and writing config files. The format is chosen by file extension. """

from pathlib import Path
from typing import Sequence, Union

from maestro.config.config import Config
from maestro.config.formats import ConfigLoader, ConfigSaver, MultiLoader

ENCODING = "utf-8"


def _extension(path: Path) -> str:
  return path.suffix.lstrip(".").lower()


def read_config_file(path: Union[str, Path], loaders: Sequence[ConfigLoader]) -> Config:
  """ Read a Config object from a file.

  The loader registered for the file extension is used. Files with an unknown extension are tried
  with every loader in turn.

  Raises:
    ValueError: if the file cannot be loaded.
  """

  path = Path(path)
  matching = [loader for loader in loaders if loader.extension == _extension(path)]
  loader = matching[0] if len(matching) > 0 else MultiLoader(list(loaders))
  with open(path, "r", encoding=ENCODING) as f:
    return loader.load(f)


def write_config_file(path: Union[str, Path], cfg: Config, savers: Sequence[ConfigSaver]):
  """ Write a Config object to a file, in the format of its extension (default: first saver). """

  path = Path(path)
  matching = [saver for saver in savers if saver.extension == _extension(path)]
  saver = matching[0] if len(matching) > 0 else savers[0]
  with open(path, "w", encoding=ENCODING) as f:
    saver.save(f, cfg)
