from .application import Application
from .deck import DeckLayout
from .errors import ModelError, UnknownLabware, UnknownMethod, UnknownPosition
from .labware import Labware, LiquidContainer, Plate, ReagentReservoir, TipBox
from .method import Method
from .steps import (
  Aspirate,
  Dispense,
  Incubate,
  Loop,
  MethodCall,
  Mix,
  Pause,
  PlateMove,
  Remark,
  Shake,
  Step,
  StepKind,
  STEP_TYPES,
  TipEject,
  TipPickup,
  Wash,
  iter_nested,
  referenced_labware,
  referenced_positions,
)
from .variables import Variable, VariablesPool
