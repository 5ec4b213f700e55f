import json
from typing import IO

from maestro.config.config import Config
from maestro.config.formats import ConfigLoader, ConfigSaver


class JsonLoader(ConfigLoader):
  """ A ConfigLoader that loads from an IO stream that is JSON formatted. """

  extension = "json"

  def load(self, r: IO) -> Config:
    """ Load a Config object from a JSON object with one member per section. """
    config_dict = json.loads(r.read())
    if not isinstance(config_dict, dict):
      raise ValueError(f"Expected a JSON object, got {type(config_dict).__name__}")
    return Config.from_dict(config_dict)


class JsonSaver(ConfigSaver):
  """ A ConfigSaver that saves to an IO stream in JSON format. """

  extension = "json"

  def save(self, w: IO, cfg: Config):
    json.dump(cfg.as_dict, w, indent=2)
    w.write("\n")
