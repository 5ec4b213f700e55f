""" Execution events and the trace of a simulation run. """

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, overload

from maestro.__version__ import SERIALIZED_FORM_VERSION
from maestro.application import StepKind
from maestro.emulator.errors import EmulatorError


class EmulatorState(enum.Enum):
  """ State of a simulation run. `HALTED` and `COMPLETED` are terminal. """

  READY = "Ready"
  RUNNING = "Running"
  HALTED = "Halted"
  COMPLETED = "Completed"


class OutcomeStatus(enum.Enum):
  SUCCESS = "Success"
  WARNING = "Warning"
  FATAL = "Fatal"


@dataclass(frozen=True)
class Outcome:
  """ Outcome of one step.

  A warning is a condition the instrument flags without stopping; a fatal outcome is an interlock
  that halts the run.

  Attributes:
    status: Success, warning or fatal.
    reason: Short, stable description, like "insufficient volume". `None` on success.
    message: Human readable details.
  """

  status: OutcomeStatus
  reason: Optional[str] = None
  message: Optional[str] = None

  @classmethod
  def success(cls) -> "Outcome":
    return cls(OutcomeStatus.SUCCESS)

  @classmethod
  def warning(cls, reason: str, message: Optional[str] = None) -> "Outcome":
    return cls(OutcomeStatus.WARNING, reason, message)

  @classmethod
  def fatal(cls, reason: str, message: Optional[str] = None) -> "Outcome":
    return cls(OutcomeStatus.FATAL, reason, message)

  @property
  def is_fatal(self) -> bool:
    return self.status is OutcomeStatus.FATAL

  @property
  def is_warning(self) -> bool:
    return self.status is OutcomeStatus.WARNING

  def serialize(self) -> dict:
    return {"status": self.status.value, "reason": self.reason, "message": self.message}


@dataclass(frozen=True)
class Change:
  """ A resource whose value a step changed. `key` is a snapshot key. """

  key: str
  before: Any
  after: Any

  def serialize(self) -> dict:
    return {"key": self.key, "before": self.before, "after": self.after}


@dataclass(frozen=True)
class ExecutionEvent:
  """ Record of one executed step.

  Attributes:
    index: Position of the event in the trace.
    method: Method the step belongs to.
    path: Index of the step in its method, one entry per loop nesting level.
    call_stack: Methods on the call stack, entry method first.
    iteration: Current iteration of each enclosing loop, outermost first, zero based.
    kind: Kind of the step.
    description: Human readable summary of the step.
    outcome: Success, warning or fatal outcome.
    changes: Resources the step changed, with their values before and after.
    timestamp: Simulated seconds since the start of the run, after the step.
    skipped: Whether the step was disabled (commented out) and therefore not executed.
  """

  index: int
  method: str
  path: Tuple[int, ...]
  call_stack: Tuple[str, ...]
  iteration: Tuple[int, ...]
  kind: StepKind
  description: str
  outcome: Outcome
  changes: Tuple[Change, ...]
  timestamp: float
  skipped: bool = False

  def serialize(self) -> dict:
    return {
      "index": self.index,
      "method": self.method,
      "path": list(self.path),
      "call_stack": list(self.call_stack),
      "iteration": list(self.iteration),
      "kind": self.kind.value,
      "description": self.description,
      "outcome": self.outcome.serialize(),
      "changes": [change.serialize() for change in self.changes],
      "timestamp": self.timestamp,
      "skipped": self.skipped,
    }


def diff_snapshots(before: Mapping[str, Any], after: Mapping[str, Any]) -> Tuple[Change, ...]:
  """ Changes between two snapshots with the same keys, in key order of `before`. """
  return tuple(Change(key, value, after[key]) for key, value in before.items()
               if after[key] != value)


class Trace:
  """ The ordered, append-only record of one simulation run.

  Only the emulator that created a trace appends to it. Resource snapshots are not stored per event;
  `snapshot_at` replays the recorded changes onto the initial snapshot.
  """

  def __init__(self, application: str, entry_method: str, initial_snapshot: Mapping[str, Any]):
    self._application = application
    self._entry_method = entry_method
    self._initial_snapshot: Dict[str, Any] = dict(initial_snapshot)
    self._events: List[ExecutionEvent] = []
    self._state = EmulatorState.READY
    self._error: Optional[EmulatorError] = None
    self._cancelled = False

  def _record(self, event: ExecutionEvent) -> None:
    assert event.index == len(self._events), "events must be recorded in order"
    self._events.append(event)

  def _set_state(self, state: EmulatorState) -> None:
    self._state = state

  def _set_error(self, error: EmulatorError) -> None:
    self._error = error

  def _set_cancelled(self, cancelled: bool) -> None:
    self._cancelled = cancelled

  @property
  def application(self) -> str:
    return self._application

  @property
  def entry_method(self) -> str:
    return self._entry_method

  @property
  def state(self) -> EmulatorState:
    return self._state

  @property
  def error(self) -> Optional[EmulatorError]:
    """ The emulator error that ended the run, if any. Interlock failures are outcomes, not errors. """
    return self._error

  @property
  def cancelled(self) -> bool:
    """ Whether the run was stopped by `Emulator.cancel` before its next step. """
    return self._cancelled

  @property
  def events(self) -> Tuple[ExecutionEvent, ...]:
    return tuple(self._events)

  @property
  def initial_snapshot(self) -> Dict[str, Any]:
    return dict(self._initial_snapshot)

  @property
  def halted(self) -> bool:
    return self.state is EmulatorState.HALTED

  @property
  def completed(self) -> bool:
    return self.state is EmulatorState.COMPLETED

  @property
  def duration(self) -> float:
    """ Simulated seconds from the start of the run to the last event. """
    return self._events[-1].timestamp if self._events else 0

  def __len__(self) -> int:
    return len(self._events)

  def __iter__(self) -> Iterator[ExecutionEvent]:
    return iter(tuple(self._events))

  @overload
  def __getitem__(self, index: int) -> ExecutionEvent: ...

  @overload
  def __getitem__(self, index: slice) -> Tuple[ExecutionEvent, ...]: ...

  def __getitem__(self, index):
    if isinstance(index, slice):
      return tuple(self._events[index])
    return self._events[index]

  def _normalize_index(self, index: int) -> int:
    if index < 0:
      index += len(self._events)
    if not 0 <= index < len(self._events):
      raise IndexError(f"Trace has {len(self._events)} events, no event at index {index}")
    return index

  def snapshot_at(self, index: int) -> Dict[str, Any]:
    """ The resource snapshot right after the event at `index`.

    Raises:
      IndexError: if there is no event at `index`.
    """

    index = self._normalize_index(index)
    snapshot = dict(self._initial_snapshot)
    for event in self._events[:index + 1]:
      for change in event.changes:
        snapshot[change.key] = change.after
    return snapshot

  def final_snapshot(self) -> Dict[str, Any]:
    if len(self._events) == 0:
      return self.initial_snapshot
    return self.snapshot_at(len(self._events) - 1)

  def first_fatal(self) -> Optional[ExecutionEvent]:
    for event in self._events:
      if event.outcome.is_fatal:
        return event
    return None

  def warnings(self) -> Tuple[ExecutionEvent, ...]:
    return tuple(event for event in self._events if event.outcome.is_warning)

  def serialize(self) -> dict:
    return {
      "version": SERIALIZED_FORM_VERSION,
      "application": self.application,
      "entry_method": self.entry_method,
      "state": self.state.value,
      "error": str(self.error) if self.error is not None else None,
      "cancelled": self.cancelled,
      "initial_snapshot": dict(self._initial_snapshot),
      "events": [event.serialize() for event in self._events],
    }

  def __repr__(self) -> str:
    return f"Trace(entry_method={self.entry_method!r}, events={len(self._events)}, " \
      f"state={self.state.value})"
