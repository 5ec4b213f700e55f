""" Read-only projections over an application and the traces of its simulation runs. These are the
only entry points front ends need: they never touch the builder or a runtime state directly. """

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional, Tuple

from maestro.application import Application, LiquidContainer, Step, TipBox
from maestro.builder.call_graph import call_depth
from maestro.config import Config
from maestro.emulator import ExecutionEvent, Trace, simulate


def event_at(trace: Trace, index: int) -> ExecutionEvent:
  """ The event at `index`. Negative indices count from the end.

  Raises:
    IndexError: if there is no event at `index`.
  """

  if not -len(trace) <= index < len(trace):
    raise IndexError(f"Trace has {len(trace)} events, no event at index {index}")
  return trace[index]


def snapshot_at(trace: Trace, index: int) -> Dict[str, Any]:
  """ Resource snapshot right after the event at `index`. """
  return trace.snapshot_at(index)


def first_fatal(trace: Trace) -> Optional[ExecutionEvent]:
  return trace.first_fatal()


def warnings(trace: Trace) -> Tuple[ExecutionEvent, ...]:
  return trace.warnings()


def trace_summary(trace: Trace) -> dict:
  """ Summary of a run: final state, event counts per outcome, the first fatal event and the
  simulated duration. """

  counts = {"Success": 0, "Warning": 0, "Fatal": 0}
  skipped = 0
  for event in trace:
    counts[event.outcome.status.value] += 1
    if event.skipped:
      skipped += 1
  fatal = trace.first_fatal()
  return {
    "application": trace.application,
    "entry_method": trace.entry_method,
    "state": trace.state.value,
    "cancelled": trace.cancelled,
    "events": len(trace),
    "outcomes": counts,
    "skipped": skipped,
    "first_fatal": fatal.serialize() if fatal is not None else None,
    "error": str(trace.error) if trace.error is not None else None,
    "duration": trace.duration,
  }


def _step_row(path: Tuple[int, ...], step: Step) -> dict:
  return {
    "path": list(path),
    "kind": step.kind.value,
    "description": step.describe(),
    "enabled": step.enabled,
    "comment": step.comment,
  }


class ApplicationQuery:
  """ Query interface over one application.

  Traces are computed on first request and cached per entry method, so repeated queries return the
  same trace object. Safe to use from several threads; simulations of different entry methods run
  independently.
  """

  def __init__(self, application: Application, config: Optional[Config] = None):
    self.application = application
    self.config = config
    self._traces: Dict[str, Trace] = {}
    self._lock = threading.Lock()

  def list_methods(self) -> List[dict]:
    app = self.application
    return [{
      "name": method.name,
      "description": method.description,
      "steps": len(method),
      "hidden": method.hidden,
      "startup": method.name == app.startup_method,
      "calls": list(method.called_methods()),
    } for method in app.methods]

  def method_detail(self, name: str) -> dict:
    """ Raises `UnknownMethod` for an unknown name. """
    method = self.application.get_method(name)
    return {
      "name": method.name,
      "description": method.description,
      "hidden": method.hidden,
      "local_variables": method.local_variables.serialize(),
      "parameters": method.parameters.serialize(),
      "calls": list(method.called_methods()),
      "call_depth": call_depth(self._call_graph(), name),
      "steps": self.list_steps(name),
    }

  def _call_graph(self) -> Dict[str, Tuple[str, ...]]:
    return {method.name: method.called_methods() for method in self.application.methods}

  def list_steps(self, name: str) -> List[dict]:
    """ All steps of a method depth first, loop bodies included. """
    return [_step_row(path, step) for path, step in self.application.get_method(name).walk()]

  def deck_layout(self) -> List[dict]:
    rows = []
    for position in self.application.deck:
      labware = self.application.labware_at(position)
      rows.append({
        "position": position,
        "labware": labware.identifier if labware is not None else None,
        "type": labware.__class__.__name__ if labware is not None else None,
      })
    return rows

  def labware(self, identifier: str) -> dict:
    """ Raises `UnknownLabware` for an unknown identifier. """
    labware = self.application.get_labware(identifier)
    data = labware.serialize()
    data["position"] = self.application.deck.position_of(identifier)
    if isinstance(labware, LiquidContainer):
      data["total_volume"] = sum(labware.initial_volume_map().values())
    elif isinstance(labware, TipBox):
      data["tip_count"] = labware.tip_count
    return data

  def _entry(self, entry_method: Optional[str]) -> Optional[str]:
    return entry_method if entry_method is not None else self.application.startup_method

  def simulate(self, entry_method: Optional[str] = None) -> Trace:
    """ The trace of running `entry_method` (by default the startup method) to the end.

    Raises:
      UnknownMethod: if the method does not exist.
    """

    entry = self._entry(entry_method)
    with self._lock:
      if entry is not None and entry in self._traces:
        return self._traces[entry]

    # simulate outside the lock, runs of other entry methods must not wait for this one
    trace = simulate(self.application, entry, config=self.config)

    with self._lock:
      return self._traces.setdefault(trace.entry_method, trace)

  def trace(self, entry_method: Optional[str] = None) -> dict:
    """ Serialized trace of `entry_method`, with the summary. """
    trace = self.simulate(entry_method)
    data = trace.serialize()
    data["summary"] = trace_summary(trace)
    return data
