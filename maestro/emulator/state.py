""" Mutable state of one simulation run. """

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from maestro.application import Application, Labware, LiquidContainer, TipBox
from maestro.emulator.errors import (
  DeckCollisionError,
  EmptyPositionError,
  LabwareNotOnDeckError,
  UnknownWellError,
  WrongLabwareError,
)
from maestro.emulator.machine import SciCloneG3
from maestro.emulator.tip_tracker import TipBoxTracker
from maestro.emulator.volume_tracker import VolumeTracker
from maestro.utils.positions import well_name_to_index

Snapshot = Dict[str, Any]


class DeckTracker:
  """ Tracks which labware occupies which deck position. """

  def __init__(self, occupancy: Dict[str, Optional[str]]):
    self._occupancy = dict(occupancy)
    self._pending = dict(occupancy)

  def get(self, position: str) -> Optional[str]:
    """ Labware at `position`. Note that this includes pending operations. """
    return self._pending[position]

  def position_of(self, labware: str) -> Optional[str]:
    for position, identifier in self._pending.items():
      if identifier == labware:
        return position
    return None

  def move(self, source: str, destination: str) -> str:
    """ Move the labware at `source` to `destination`.

    Returns:
      The identifier of the moved labware.

    Raises:
      EmptyPositionError: if there is no labware at `source`.
      DeckCollisionError: if `destination` is occupied.
    """

    labware = self._pending[source]
    if labware is None:
      raise EmptyPositionError(f"No labware at {source} to move.")
    if self._pending[destination] is not None:
      raise DeckCollisionError(
        f"Cannot move {labware} onto {destination}, occupied by {self._pending[destination]}.")
    self._pending[source] = None
    self._pending[destination] = labware
    return labware

  def committed(self) -> Dict[str, Optional[str]]:
    return dict(self._occupancy)

  def commit(self) -> None:
    self._occupancy = dict(self._pending)

  def rollback(self) -> None:
    self._pending = dict(self._occupancy)


class RuntimeState:
  """ Everything that changes while a protocol runs: deck occupancy, well volumes, tip box
  contents, and the machine (mounted tips, head and gripper position, clock).

  A `RuntimeState` is seeded from an `Application` and owned by exactly one simulation run. Step
  handlers change pending state; the emulator commits after a successful step and rolls back after
  an interlock, so a failed step never leaves a trace in the state.
  """

  def __init__(self, application: Application):
    self.application = application
    self.deck = DeckTracker(application.deck.occupancy())
    self.machine = SciCloneG3()
    self.wells: Dict[str, Dict[str, VolumeTracker]] = {}
    self.tip_boxes: Dict[str, TipBoxTracker] = {}

    for identifier, labware in application.labware.items():
      if isinstance(labware, LiquidContainer):
        self.wells[identifier] = {
          name: VolumeTracker(thing=f"{identifier}:{name}", max_volume=labware.well_capacity,
                              initial_volume=labware.initial_volume(name))
          for name in labware.well_names()
        }
      elif isinstance(labware, TipBox):
        self.tip_boxes[identifier] = TipBoxTracker(identifier, labware.tips_present)

  # Lookups used by step handlers. They see pending state.

  def labware_at(self, position: str) -> Labware:
    """ The labware at `position`.

    Raises:
      EmptyPositionError: if no labware is at `position`.
    """

    identifier = self.deck.get(position)
    if identifier is None:
      raise EmptyPositionError(f"No labware at deck position {position}.")
    return self.application.get_labware(identifier)

  def liquid_container_at(self, position: str) -> LiquidContainer:
    labware = self.labware_at(position)
    if not isinstance(labware, LiquidContainer):
      raise WrongLabwareError(
        f"{labware.identifier} at {position} is a {labware.__class__.__name__}, "
        "which does not hold liquid.")
    return labware

  def tip_box_at(self, position: str) -> Tuple[TipBox, TipBoxTracker]:
    labware = self.labware_at(position)
    if not isinstance(labware, TipBox):
      raise WrongLabwareError(
        f"{labware.identifier} at {position} is a {labware.__class__.__name__}, not a tip box.")
    return labware, self.tip_boxes[labware.identifier]

  def well_trackers(self, labware: LiquidContainer, wells: Tuple[str, ...]
                    ) -> List[VolumeTracker]:
    """ Volume trackers of the named wells, or of every well when `wells` is empty.

    Raises:
      UnknownWellError: if `labware` has no well with one of the names.
    """

    trackers = self.wells[labware.identifier]
    if len(wells) == 0:
      return list(trackers.values())
    result = []
    for name in wells:
      try:
        well_name_to_index(name, labware.rows, labware.columns)
      except ValueError as e:
        raise UnknownWellError(f"{labware.identifier} has no well {name}.") from e
      result.append(trackers[name])
    return result

  def require_on_deck(self, labware: str) -> str:
    """ Position of `labware` on the deck.

    Raises:
      LabwareNotOnDeckError: if the labware is not on the deck.
    """

    position = self.deck.position_of(labware)
    if position is None:
      raise LabwareNotOnDeckError(f"Labware {labware} is not on the deck.")
    return position

  # Transactions

  def commit(self) -> None:
    self.deck.commit()
    self.machine.commit()
    for trackers in self.wells.values():
      for tracker in trackers.values():
        tracker.commit()
    for box in self.tip_boxes.values():
      box.commit()

  def rollback(self) -> None:
    self.deck.rollback()
    self.machine.rollback()
    for trackers in self.wells.values():
      for tracker in trackers.values():
        tracker.rollback()
    for box in self.tip_boxes.values():
      box.rollback()

  def snapshot(self) -> Snapshot:
    """ The committed state as a flat mapping of resource key to value.

    Keys: `deck/<position>`, `volume/<labware>/<well>`, `tips/<tip box>`, `head/position`,
    `head/tip_set`, `head/tips`, `head/volume`, `gripper/position` and `clock`.
    """

    snapshot: Snapshot = {}
    for position, labware in self.deck.committed().items():
      snapshot[f"deck/{position}"] = labware
    for identifier, trackers in self.wells.items():
      for name, tracker in trackers.items():
        snapshot[f"volume/{identifier}/{name}"] = tracker.volume
    for identifier, box in self.tip_boxes.items():
      snapshot[f"tips/{identifier}"] = box.bitmap()
    tips = self.machine.head.tips
    snapshot["head/position"] = self.machine.head_position
    snapshot["head/tip_set"] = tips.tip_set if tips is not None else None
    snapshot["head/tips"] = tips.count if tips is not None else 0
    snapshot["head/volume"] = tips.volume if tips is not None else 0
    snapshot["gripper/position"] = self.machine.gripper_position
    snapshot["clock"] = self.machine.clock
    return snapshot
