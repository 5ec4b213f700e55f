from typing import ClassVar, Sequence


class EmulatorError(Exception):
  """ Base class for conditions that end a simulation run outside the step semantics. """


class CallDepthExceeded(EmulatorError):
  """ Raised when a method call would nest deeper than the configured maximum call depth. """

  def __init__(self, limit: int, call_stack: Sequence[str], method: str):
    super().__init__(f"Calling '{method}' exceeds the maximum call depth of {limit} "
                     f"(call stack: {' -> '.join(call_stack)})")
    self.limit = limit
    self.call_stack = tuple(call_stack)
    self.method = method


class InterlockError(Exception):
  """ Base class for conditions the instrument refuses to continue from. Raised by step handlers,
  recorded as a Fatal outcome in the trace, and never propagated out of a simulation run.

  Attributes:
    reason: Short, stable description of the interlock, used as the outcome reason.
  """

  reason: ClassVar[str] = "interlock"


class TooLittleLiquidError(InterlockError):
  """ Raised when trying to aspirate more liquid from a well than is still present. """

  reason = "insufficient volume"


class TooLittleVolumeError(InterlockError):
  """ Raised when trying to dispense more liquid into a well than it has room for. """

  reason = "insufficient capacity"


class HasTipError(InterlockError):
  """ Raised when loading tips while tips are already mounted on the head. """

  reason = "tips already mounted"


class NoTipError(InterlockError):
  """ Raised when an operation needs tips and none are mounted. """

  reason = "no tips mounted"


class TooFewTipsError(InterlockError):
  """ Raised when a tip box holds fewer tips than a pickup needs. """

  reason = "insufficient tips"


class TipBoxFullError(InterlockError):
  """ Raised when returning tips to a tip box without enough free spots. """

  reason = "tip box full"


class TipCapacityError(InterlockError):
  """ Raised when aspirating more liquid than the mounted tips can hold. """

  reason = "tip capacity exceeded"


class TooLittleTipVolumeError(InterlockError):
  """ Raised when dispensing more liquid than the mounted tips hold. """

  reason = "insufficient tip volume"


class TipSetMismatchError(InterlockError):
  """ Raised when a step names a tip set other than the one mounted. """

  reason = "tip set mismatch"


class DeckCollisionError(InterlockError):
  """ Raised when labware is moved onto an occupied deck position. """

  reason = "deck collision"


class EmptyPositionError(InterlockError):
  """ Raised when a step needs labware at a deck position that is empty. """

  reason = "empty position"


class WrongLabwareError(InterlockError):
  """ Raised when the labware at a position cannot be used for the operation, like aspirating
  from a tip box. """

  reason = "invalid labware"


class LabwareNotOnDeckError(InterlockError):
  """ Raised when a step refers to labware that is not on the deck. """

  reason = "labware not on deck"


class UnknownWellError(InterlockError):
  """ Raised when a step names a well the labware at its position does not have. """

  reason = "unknown well"
