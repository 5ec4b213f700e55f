from .emulator import Emulator, simulate
from .errors import (
  CallDepthExceeded,
  DeckCollisionError,
  EmulatorError,
  EmptyPositionError,
  HasTipError,
  InterlockError,
  LabwareNotOnDeckError,
  NoTipError,
  TipBoxFullError,
  TipCapacityError,
  TipSetMismatchError,
  TooFewTipsError,
  TooLittleLiquidError,
  TooLittleTipVolumeError,
  TooLittleVolumeError,
  UnknownWellError,
  WrongLabwareError,
)
from .machine import SciCloneG3
from .state import DeckTracker, RuntimeState, Snapshot
from .tip_tracker import HeadTipTracker, MountedTips, TipBoxTracker
from .trace import Change, EmulatorState, ExecutionEvent, Outcome, OutcomeStatus, Trace
from .volume_tracker import VolumeTracker
