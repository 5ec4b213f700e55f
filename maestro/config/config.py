import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

LOG_FROM_STRING = {
  "DEBUG": logging.DEBUG,
  "INFO": logging.INFO,
  "WARNING": logging.WARNING,
  "ERROR": logging.ERROR,
  "CRITICAL": logging.CRITICAL,
}

LOG_TO_STRING = {v: k for k, v in LOG_FROM_STRING.items()}

DEFAULT_MAX_CALL_DEPTH = 16


@dataclass
class Config:
  """The configuration object for maestro."""

  @dataclass
  class Logging:
    """The logging configuration."""

    level: int = logging.INFO
    log_dir: Optional[Path] = None

  @dataclass
  class Emulation:
    """Limits applied by the emulator to every simulation run."""

    max_call_depth: int = DEFAULT_MAX_CALL_DEPTH

    def __post_init__(self):
      if self.max_call_depth < 1:
        raise ValueError(f"max_call_depth must be at least 1, got {self.max_call_depth}")

  logging: Logging = field(default_factory=Logging)
  emulation: Emulation = field(default_factory=Emulation)

  @classmethod
  def from_dict(cls, d: dict) -> "Config":
    logging_data = d.get("logging", {})
    emulation_data = d.get("emulation", {})
    return cls(
      logging=cls.Logging(
        level=LOG_FROM_STRING[logging_data.get("level", "INFO")],
        log_dir=Path(logging_data["log_dir"]) if logging_data.get("log_dir") else None,
      ),
      emulation=cls.Emulation(
        max_call_depth=int(emulation_data.get("max_call_depth", DEFAULT_MAX_CALL_DEPTH)),
      ),
    )

  @property
  def as_dict(self) -> dict:
    return {
      "logging": {
        "level": LOG_TO_STRING[self.logging.level],
        "log_dir": str(self.logging.log_dir) if self.logging.log_dir is not None else None,
      },
      "emulation": {
        "max_call_depth": self.emulation.max_call_depth,
      },
    }
