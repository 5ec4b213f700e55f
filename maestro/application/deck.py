from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple

from maestro.application.errors import UnknownPosition


class DeckLayout:
  """ The deck of the instrument at protocol start.

  Maps each deck position (e.g. "C3") to the identifier of the labware sitting on it, or `None` for
  an empty position. Positions keep the order in which the layout declares them. A labware
  identifier occupies at most one position.
  """

  def __init__(self, positions: Mapping[str, Optional[str]], name: str = "deck"):
    self._name = name
    self._positions: Mapping[str, Optional[str]] = MappingProxyType(dict(positions))
    occupied = [labware for labware in self._positions.values() if labware is not None]
    if len(occupied) != len(set(occupied)):
      raise ValueError(f"Labware placed on more than one position of deck '{name}'")

  @property
  def name(self) -> str:
    return self._name

  @property
  def positions(self) -> Tuple[str, ...]:
    return tuple(self._positions)

  def __contains__(self, position: object) -> bool:
    return position in self._positions

  def __iter__(self) -> Iterator[str]:
    return iter(self._positions)

  def __len__(self) -> int:
    return len(self._positions)

  def __eq__(self, other: object) -> bool:
    if not isinstance(other, DeckLayout):
      return NotImplemented
    return self.name == other.name and list(self._positions.items()) == \
      list(other._positions.items())

  def __hash__(self) -> int:
    return hash((self.name, tuple(self._positions.items())))

  def get(self, position: str) -> Optional[str]:
    """ Get the identifier of the labware at `position`, `None` if the position is empty.

    Raises:
      UnknownPosition: if the deck has no such position.
    """

    if position not in self._positions:
      raise UnknownPosition(f"Deck position '{position}' does not exist on deck '{self.name}'")
    return self._positions[position]

  def position_of(self, labware: str) -> Optional[str]:
    """ The position holding `labware` at protocol start, `None` if it is not on the deck. """
    for position, identifier in self._positions.items():
      if identifier == labware:
        return position
    return None

  def occupancy(self) -> Dict[str, Optional[str]]:
    """ A mutable copy of the position -> labware mapping. """
    return dict(self._positions)

  def serialize(self) -> dict:
    return {
      "type": self.__class__.__name__,
      "name": self.name,
      "positions": dict(self._positions),
    }

  def __repr__(self) -> str:
    return f"DeckLayout(name={self.name!r}, positions={dict(self._positions)!r})"
