from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from maestro.emulator.errors import (
  HasTipError,
  NoTipError,
  TipBoxFullError,
  TipCapacityError,
  TooFewTipsError,
  TooLittleTipVolumeError,
)
from maestro.emulator.volume_tracker import TOLERANCE


class TipBoxTracker:
  """ Tracks which spots of a tip box hold a tip and raises errors if tip operations are invalid.

  Spots are indexed row-major. Like the volume tracker, operations change the pending state until
  they are committed or rolled back.
  """

  def __init__(self, thing: str, present: Sequence[bool]):
    self.thing = thing
    self._present: Tuple[bool, ...] = tuple(present)
    self._pending: List[bool] = list(present)

  @property
  def size(self) -> int:
    return len(self._present)

  def available(self) -> int:
    """ Number of tips in the box. Note that this includes pending operations. """
    return sum(1 for present in self._pending if present)

  def free(self) -> int:
    """ Number of empty spots. Note that this includes pending operations. """
    return self.size - self.available()

  def take(self, count: int) -> Tuple[int, ...]:
    """ Take the first `count` tips in row-major order.

    Returns:
      The indices of the spots the tips were taken from.

    Raises:
      TooFewTipsError: if fewer than `count` tips are in the box.
    """

    if count > self.available():
      raise TooFewTipsError(f"{self.thing} holds {self.available()} tips, {count} needed.")
    spots = tuple(i for i, present in enumerate(self._pending) if present)[:count]
    for i in spots:
      self._pending[i] = False
    return spots

  def put(self, spots: Sequence[int]) -> None:
    """ Return tips to the given spots.

    Raises:
      TipBoxFullError: if one of the spots already holds a tip.
    """

    for i in spots:
      if self._pending[i]:
        raise TipBoxFullError(f"Spot {i} of {self.thing} already holds a tip.")
    for i in spots:
      self._pending[i] = True

  def fill(self, count: int) -> Tuple[int, ...]:
    """ Put `count` tips into the first free spots.

    Raises:
      TipBoxFullError: if there are fewer than `count` free spots.
    """

    if count > self.free():
      raise TipBoxFullError(f"{self.thing} has {self.free()} free spots, {count} tips returned.")
    spots = tuple(i for i, present in enumerate(self._pending) if not present)[:count]
    self.put(spots)
    return spots

  def bitmap(self) -> str:
    """ Committed availability as a string of `1` (tip) and `0` (empty), row-major. """
    return "".join("1" if present else "0" for present in self._present)

  def commit(self) -> None:
    self._present = tuple(self._pending)

  def rollback(self) -> None:
    self._pending = list(self._present)

  def __repr__(self) -> str:
    return f"TipBoxTracker({self.thing}, available={sum(self._present)}/{self.size})"


@dataclass(frozen=True)
class MountedTips:
  """ A set of tips mounted on the pipetting head.

  Attributes:
    tip_set: Name of the tip set, by default the identifier of the box the tips came from.
    box: Identifier of the tip box the tips were loaded from.
    spots: Indices of the spots in `box` the tips were taken from.
    tip_volume: Capacity of one tip in uL.
    volume: Liquid held by each tip in uL.
  """

  tip_set: str
  box: str
  spots: Tuple[int, ...]
  tip_volume: float
  volume: float = 0

  @property
  def count(self) -> int:
    return len(self.spots)


class HeadTipTracker:
  """ A tip tracker for the pipetting head: tracks the mounted tip set and the liquid it holds, and
  raises errors if the tip operations are invalid. """

  def __init__(self, thing: str = "head"):
    self.thing = thing
    self._tips: Optional[MountedTips] = None
    self._pending_tips: Optional[MountedTips] = None

  @property
  def has_tips(self) -> bool:
    """ Whether tips are mounted. Note that this includes pending operations. """
    return self._pending_tips is not None

  @property
  def tips(self) -> Optional[MountedTips]:
    """ The committed tip set, if any. """
    return self._tips

  def get_tips(self) -> MountedTips:
    """ Get the mounted tips. Note that this includes pending operations.

    Raises:
      NoTipError: If no tips are mounted.
    """

    if self._pending_tips is None:
      raise NoTipError(f"{self.thing} does not have tips.")
    return self._pending_tips

  def add_tips(self, tips: MountedTips) -> None:
    if self._pending_tips is not None:
      raise HasTipError(f"{self.thing} already has tip set '{self._pending_tips.tip_set}'.")
    self._pending_tips = tips

  def remove_tips(self) -> MountedTips:
    tips = self.get_tips()
    self._pending_tips = None
    return tips

  def aspirate(self, volume: float) -> None:
    tips = self.get_tips()
    if tips.volume + volume - tips.tip_volume > TOLERANCE:
      raise TipCapacityError(
        f"Tips of '{tips.tip_set}' hold {tips.tip_volume}uL, cannot take {volume}uL on top of "
        f"{tips.volume}uL.")
    self._pending_tips = replace(tips, volume=min(tips.volume + volume, tips.tip_volume))

  def dispense(self, volume: float) -> None:
    tips = self.get_tips()
    if volume - tips.volume > TOLERANCE:
      raise TooLittleTipVolumeError(
        f"Tips of '{tips.tip_set}' hold {tips.volume}uL, cannot dispense {volume}uL.")
    self._pending_tips = replace(tips, volume=max(tips.volume - volume, 0))

  def commit(self) -> None:
    self._tips = self._pending_tips

  def rollback(self) -> None:
    self._pending_tips = self._tips

  def __repr__(self) -> str:
    return f"HeadTipTracker({self.thing}, tips={self._tips}, pending_tips={self._pending_tips})"
