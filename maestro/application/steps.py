""" The instruction set of the workstation.

Steps form a closed set: every kind is a frozen dataclass listed in `STEP_TYPES`, and the emulator
keeps one handler per kind. Adding a kind means touching the builder, the emulator and the query
layer together.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, fields
from typing import ClassVar, Iterator, Optional, Tuple, Union, cast


class StepKind(enum.Enum):
  """ Kind tag of a step. The value is the command name used in exported applications. """

  ASPIRATE = "Aspirate"
  DISPENSE = "Dispense"
  MIX = "Mix"
  TIP_PICKUP = "TipPickup"
  TIP_EJECT = "TipEject"
  PLATE_MOVE = "PlateMove"
  WASH = "Wash"
  INCUBATE = "Incubate"
  SHAKE = "Shake"
  PAUSE = "Pause"
  METHOD_CALL = "MethodCall"
  LOOP = "Loop"
  REMARK = "Remark"


def _wells(wells: Tuple[str, ...]) -> str:
  return ",".join(wells) if wells else "all wells"


class StepBase:
  """ Behaviour shared by all step kinds. Subclasses are frozen dataclasses that end with the
  `enabled` and `comment` fields. """

  kind: ClassVar[StepKind]
  enabled: bool
  comment: str

  def describe(self) -> str:
    raise NotImplementedError

  def serialize(self) -> dict:
    return serialize_step(cast("Step", self))


@dataclass(frozen=True)
class Aspirate(StepBase):
  position: str
  volume: float
  wells: Tuple[str, ...] = ()
  tip_set: Optional[str] = None
  enabled: bool = True
  comment: str = ""

  kind: ClassVar[StepKind] = StepKind.ASPIRATE

  def describe(self) -> str:
    return f"Aspirate {self.volume} uL from {self.position} ({_wells(self.wells)})"


@dataclass(frozen=True)
class Dispense(StepBase):
  position: str
  volume: float = 0
  wells: Tuple[str, ...] = ()
  tip_set: Optional[str] = None
  dispense_all: bool = False
  enabled: bool = True
  comment: str = ""

  kind: ClassVar[StepKind] = StepKind.DISPENSE

  def describe(self) -> str:
    amount = "all" if self.dispense_all else f"{self.volume} uL"
    return f"Dispense {amount} into {self.position} ({_wells(self.wells)})"


@dataclass(frozen=True)
class Mix(StepBase):
  position: str
  volume: float
  cycles: int = 1
  wells: Tuple[str, ...] = ()
  enabled: bool = True
  comment: str = ""

  kind: ClassVar[StepKind] = StepKind.MIX

  def describe(self) -> str:
    return f"Mix {self.volume} uL x{self.cycles} at {self.position} ({_wells(self.wells)})"


@dataclass(frozen=True)
class TipPickup(StepBase):
  position: str
  tip_set: Optional[str] = None
  tips: Optional[int] = None
  enabled: bool = True
  comment: str = ""

  kind: ClassVar[StepKind] = StepKind.TIP_PICKUP

  def describe(self) -> str:
    count = "all" if self.tips is None else str(self.tips)
    return f"Load {count} tips from {self.position}"


@dataclass(frozen=True)
class TipEject(StepBase):
  position: Optional[str] = None
  enabled: bool = True
  comment: str = ""

  kind: ClassVar[StepKind] = StepKind.TIP_EJECT

  def describe(self) -> str:
    return f"Eject tips to {self.position or 'waste'}"


@dataclass(frozen=True)
class PlateMove(StepBase):
  source: str
  destination: str
  duration: float = 0
  enabled: bool = True
  comment: str = ""

  kind: ClassVar[StepKind] = StepKind.PLATE_MOVE

  def describe(self) -> str:
    return f"Move labware from {self.source} to {self.destination}"


@dataclass(frozen=True)
class Wash(StepBase):
  duration: float = 0
  cycles: int = 1
  labware: Optional[str] = None
  enabled: bool = True
  comment: str = ""

  kind: ClassVar[StepKind] = StepKind.WASH

  def describe(self) -> str:
    return f"Wash x{self.cycles} ({self.duration} s each)"


@dataclass(frozen=True)
class Incubate(StepBase):
  duration: float = 0
  temperature: Optional[float] = None
  labware: Optional[str] = None
  enabled: bool = True
  comment: str = ""

  kind: ClassVar[StepKind] = StepKind.INCUBATE

  def describe(self) -> str:
    at = f" at {self.temperature} C" if self.temperature is not None else ""
    return f"Incubate {self.labware or ''} for {self.duration} s{at}".replace("  ", " ")


@dataclass(frozen=True)
class Shake(StepBase):
  duration: float = 0
  speed: Optional[float] = None
  labware: Optional[str] = None
  enabled: bool = True
  comment: str = ""

  kind: ClassVar[StepKind] = StepKind.SHAKE

  def describe(self) -> str:
    at = f" at {self.speed} rpm" if self.speed is not None else ""
    return f"Shake {self.labware or ''} for {self.duration} s{at}".replace("  ", " ")


@dataclass(frozen=True)
class Pause(StepBase):
  duration: float = 0
  message: str = ""
  enabled: bool = True
  comment: str = ""

  kind: ClassVar[StepKind] = StepKind.PAUSE

  def describe(self) -> str:
    return f"Pause {self.duration} s" + (f": {self.message}" if self.message else "")


@dataclass(frozen=True)
class MethodCall(StepBase):
  method: str
  enabled: bool = True
  comment: str = ""

  kind: ClassVar[StepKind] = StepKind.METHOD_CALL

  def describe(self) -> str:
    return f"Call {self.method}"


@dataclass(frozen=True)
class Loop(StepBase):
  iterations: int
  body: Tuple["Step", ...] = field(default=())
  enabled: bool = True
  comment: str = ""

  kind: ClassVar[StepKind] = StepKind.LOOP

  def describe(self) -> str:
    return f"Loop x{self.iterations} ({len(self.body)} steps)"


@dataclass(frozen=True)
class Remark(StepBase):
  text: str = ""
  enabled: bool = True
  comment: str = ""

  kind: ClassVar[StepKind] = StepKind.REMARK

  def describe(self) -> str:
    return f"REM {self.text}"


Step = Union[Aspirate, Dispense, Mix, TipPickup, TipEject, PlateMove, Wash, Incubate, Shake, Pause,
             MethodCall, Loop, Remark]

STEP_TYPES = (Aspirate, Dispense, Mix, TipPickup, TipEject, PlateMove, Wash, Incubate, Shake,
              Pause, MethodCall, Loop, Remark)

STEP_TYPE_BY_KIND = {klass.kind: klass for klass in STEP_TYPES}


def referenced_positions(step: Step) -> Tuple[str, ...]:
  """ Deck positions a step refers to directly (loop bodies not included). """
  if isinstance(step, (Aspirate, Dispense, Mix, TipPickup)):
    return (step.position,)
  if isinstance(step, TipEject):
    return (step.position,) if step.position is not None else ()
  if isinstance(step, PlateMove):
    return (step.source, step.destination)
  return ()


def referenced_labware(step: Step) -> Tuple[str, ...]:
  """ Labware identifiers a step refers to directly. """
  if isinstance(step, (Wash, Incubate, Shake)) and step.labware is not None:
    return (step.labware,)
  return ()


def iter_nested(steps: Tuple[Step, ...], prefix: Tuple[int, ...] = ()
                ) -> Iterator[Tuple[Tuple[int, ...], Step]]:
  """ Depth-first walk over `steps` and loop bodies, yielding `(path, step)`. """
  for i, step in enumerate(steps):
    path = prefix + (i,)
    yield path, step
    if isinstance(step, Loop):
      yield from iter_nested(step.body, path)


def serialize_step(step: Step) -> dict:
  data: dict = {"type": step.__class__.__name__}
  for f in fields(step):
    value = getattr(step, f.name)
    if f.name == "body":
      data["body"] = [serialize_step(s) for s in value]
    elif isinstance(value, tuple):
      data[f.name] = list(value)
    else:
      data[f.name] = value
  return data
