""" Config formats. A loader reads a Config from a text stream and a saver writes one to it. """

from abc import ABC, abstractmethod
from typing import IO, List

from maestro.config.config import Config


class ConfigLoader(ABC):
  """ Reads a Config from a stream. Raises ValueError or KeyError on malformed content. """

  extension: str

  @abstractmethod
  def load(self, r: IO) -> Config:
    ...


class ConfigSaver(ABC):
  """ Writes a Config to a stream. """

  extension: str

  @abstractmethod
  def save(self, w: IO, cfg: Config):
    ...


class MultiLoader(ConfigLoader):
  """ Tries each loader in order on the same (seekable) stream. The first success wins. """

  extension = ""

  def __init__(self, loaders: List[ConfigLoader]):
    self.loaders = loaders

  def load(self, r: IO) -> Config:
    failures = []
    for loader in self.loaders:
      r.seek(0)
      try:
        return loader.load(r)
      except (ValueError, KeyError) as e:
        failures.append(f"{loader.extension}: {e}")
    raise ValueError("No loader could read the config (" + "; ".join(failures) + ")")
