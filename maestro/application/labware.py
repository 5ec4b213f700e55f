""" Labware definitions: the plates, tip boxes and reservoirs placed on the deck. """

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from maestro.utils.positions import well_name_to_index, well_names


@dataclass(frozen=True)
class Labware:
  """ Base class for all labware. Wells (or tip spots) are laid out in a `rows` x `columns` grid
  and named `A1`, `A2`, ... in row-major order. """

  identifier: str
  rows: int
  columns: int
  description: str = ""

  @property
  def size(self) -> int:
    """ Number of wells or tip spots. """
    return self.rows * self.columns

  @property
  def holds_liquid(self) -> bool:
    return False

  def well_names(self) -> List[str]:
    return well_names(self.rows, self.columns)

  def has_well(self, name: str) -> bool:
    try:
      well_name_to_index(name, self.rows, self.columns)
    except ValueError:
      return False
    return True

  def serialize(self) -> dict:
    return {
      "type": self.__class__.__name__,
      "identifier": self.identifier,
      "rows": self.rows,
      "columns": self.columns,
      "description": self.description,
    }


@dataclass(frozen=True)
class LiquidContainer(Labware):
  """ Labware whose wells hold liquid. `initial_volumes` is row-major, one entry per well. """

  well_capacity: float = 0
  initial_volumes: Tuple[float, ...] = field(default=())

  @property
  def holds_liquid(self) -> bool:
    return True

  def initial_volume(self, well: str) -> float:
    if not self.initial_volumes:
      return 0
    return self.initial_volumes[well_name_to_index(well, self.rows, self.columns)]

  def initial_volume_map(self) -> Dict[str, float]:
    return {name: self.initial_volume(name) for name in self.well_names()}

  def serialize(self) -> dict:
    return {
      **super().serialize(),
      "well_capacity": self.well_capacity,
      "initial_volumes": list(self.initial_volumes),
    }


@dataclass(frozen=True)
class Plate(LiquidContainer):
  """ A microplate, usually 96 or 384 wells. """


@dataclass(frozen=True)
class ReagentReservoir(LiquidContainer):
  """ A reagent reservoir or trough. A single-well reservoir is shared by all channels. """


@dataclass(frozen=True)
class TipBox(Labware):
  """ A box of disposable tips. `tips_present` is row-major, `True` where a tip sits. """

  tip_volume: float = 0
  tips_present: Tuple[bool, ...] = field(default=())

  @property
  def tip_count(self) -> int:
    """ Number of tips in the box at protocol start. """
    return sum(1 for present in self.tips_present if present)

  def serialize(self) -> dict:
    return {
      **super().serialize(),
      "tip_volume": self.tip_volume,
      "tips_present": list(self.tips_present),
    }
