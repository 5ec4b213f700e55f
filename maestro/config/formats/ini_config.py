import configparser
from typing import IO

from maestro.config.config import Config
from maestro.config.formats import ConfigLoader, ConfigSaver


class IniLoader(ConfigLoader):
  """ Reads an INI file with one `[section]` per Config section. """

  extension = "ini"

  def load(self, r: IO) -> Config:
    parser = configparser.ConfigParser(interpolation=None)
    try:
      parser.read_file(r)
    except configparser.Error as e:
      raise ValueError(f"Invalid INI config: {e}") from e
    return Config.from_dict({name: dict(parser.items(name)) for name in parser.sections()})


class IniSaver(ConfigSaver):
  """ Writes an INI file. Unset (`None`) options are left out. """

  extension = "ini"

  def save(self, w: IO, cfg: Config):
    parser = configparser.ConfigParser(interpolation=None)
    for section, options in cfg.as_dict.items():
      parser[section] = {key: str(value) for key, value in options.items() if value is not None}
    parser.write(w)
