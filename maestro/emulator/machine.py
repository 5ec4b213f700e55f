""" Emulated mechanics of a Sciclone G3 style workstation: a pipetting head with a mountable tip
set, a plate gripper and the instrument clock. """

from typing import Optional

from maestro.emulator.tip_tracker import HeadTipTracker


class SciCloneG3:
  """ The moving parts of the workstation.

  Every attribute has a committed and a pending value, so a step that fails part way leaves the
  machine exactly as it was before the step.
  """

  def __init__(self):
    self.head = HeadTipTracker("head")
    self._head_position: Optional[str] = None
    self._pending_head_position: Optional[str] = None
    self._gripper_position: Optional[str] = None
    self._pending_gripper_position: Optional[str] = None
    self._clock: float = 0
    self._pending_clock: float = 0

  @property
  def head_position(self) -> Optional[str]:
    """ Deck position the pipetting head last went to. """
    return self._head_position

  @property
  def gripper_position(self) -> Optional[str]:
    """ Deck position the gripper last put labware on. """
    return self._gripper_position

  @property
  def clock(self) -> float:
    """ Simulated seconds since the run started. """
    return self._clock

  def move_head(self, position: str) -> None:
    self._pending_head_position = position

  def move_gripper(self, position: str) -> None:
    self._pending_gripper_position = position

  def advance_clock(self, seconds: float) -> None:
    self._pending_clock += seconds

  def commit(self) -> None:
    self.head.commit()
    self._head_position = self._pending_head_position
    self._gripper_position = self._pending_gripper_position
    self._clock = self._pending_clock

  def rollback(self) -> None:
    self.head.rollback()
    self._pending_head_position = self._head_position
    self._pending_gripper_position = self._gripper_position
    self._pending_clock = self._clock
