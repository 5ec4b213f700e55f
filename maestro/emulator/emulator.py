""" Step interpreter for Maestro applications. """

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import maestro
from maestro.application import (
  Application,
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
  STEP_TYPES,
  TipBox,
  TipEject,
  TipPickup,
  UnknownMethod,
  Wash,
)
from maestro.config import Config
from maestro.emulator.errors import (
  CallDepthExceeded,
  HasTipError,
  InterlockError,
  TipSetMismatchError,
)
from maestro.emulator.state import RuntimeState
from maestro.emulator.tip_tracker import MountedTips
from maestro.emulator.trace import (
  EmulatorState,
  ExecutionEvent,
  Outcome,
  Trace,
  diff_snapshots,
)
from maestro.emulator.volume_tracker import TOLERANCE

logger = logging.getLogger("maestro")

CALL_DEPTH_EXCEEDED = "call depth exceeded"


@dataclass
class _Frame:
  """ A step sequence being executed: the body of a called method, or the body of a loop. """

  method: str
  steps: Tuple[Step, ...]
  prefix: Tuple[int, ...] = ()
  iterations: int = 1
  iteration: int = 0
  index: int = 0
  is_call: bool = True


class Emulator:
  """ Executes an application step by step against a private `RuntimeState`.

  Every processed step, including method calls, loops, remarks and disabled steps, produces exactly
  one `ExecutionEvent` in the trace. A step that raises an interlock error is rolled back and
  recorded as a Fatal event, and the emulator halts.

  Examples:
    Run an application to the end:

    >>> emulator = Emulator(application, "Main")
    >>> trace = emulator.run()
    >>> trace.state
    <EmulatorState.COMPLETED: 'Completed'>

    Step through it:

    >>> emulator = Emulator(application)
    >>> event = emulator.step()
    >>> event.outcome.status
    <OutcomeStatus.SUCCESS: 'Success'>
  """

  def __init__(
    self,
    application: Application,
    entry_method: Optional[str] = None,
    config: Optional[Config] = None,
  ):
    """ Create an emulator.

    Args:
      application: The application to run. It is never changed.
      entry_method: Name of the method to run, defaults to the startup method of the application.
      config: Emulation limits, defaults to `maestro.CONFIG`.

    Raises:
      UnknownMethod: if the entry method does not exist, or the application has no methods.
    """

    if entry_method is None:
      entry_method = application.startup_method
    if entry_method is None:
      raise UnknownMethod(f"Application '{application.name}' has no methods to run")
    method = application.get_method(entry_method)

    self.application = application
    self.entry_method = entry_method
    self.config = config if config is not None else maestro.CONFIG
    self.max_call_depth = self.config.emulation.max_call_depth

    self._runtime = RuntimeState(application)
    self._trace = Trace(application.name, entry_method, self._runtime.snapshot())
    self._stack: List[_Frame] = [_Frame(method=entry_method, steps=method.steps)]
    self._cancel = threading.Event()

    # current step, set while a handler runs
    self._path: Tuple[int, ...] = ()
    self._warnings: List[Tuple[str, str]] = []

    self._handlers: Dict[type, Callable[..., None]] = {
      Aspirate: self._aspirate,
      Dispense: self._dispense,
      Mix: self._mix,
      TipPickup: self._tip_pickup,
      TipEject: self._tip_eject,
      PlateMove: self._plate_move,
      Wash: self._wash,
      Incubate: self._incubate,
      Shake: self._shake,
      Pause: self._pause,
      MethodCall: self._method_call,
      Loop: self._loop,
      Remark: self._remark,
    }
    assert set(self._handlers) == set(STEP_TYPES), "every step kind needs a handler"

  @property
  def state(self) -> EmulatorState:
    return self._trace.state

  @property
  def trace(self) -> Trace:
    return self._trace

  @property
  def runtime(self) -> RuntimeState:
    return self._runtime

  @property
  def done(self) -> bool:
    return self.state in (EmulatorState.HALTED, EmulatorState.COMPLETED)

  @property
  def call_stack(self) -> Tuple[str, ...]:
    """ Names of the methods being executed, entry method first. """
    return tuple(frame.method for frame in self._stack if frame.is_call)

  def cancel(self) -> None:
    """ Ask a running `run` to stop before the next step. May be called from any thread. The
    emulator can be resumed by calling `step` or `run` again. """
    self._cancel.set()

  # Control flow

  def _next_step(self) -> Optional[Tuple[_Frame, Step]]:
    """ Move the step pointer to the next step, finishing loop iterations and returning from
    methods on the way. Returns `None` once the entry method is exhausted. """

    while len(self._stack) > 0:
      frame = self._stack[-1]
      if frame.index < len(frame.steps):
        step = frame.steps[frame.index]
        frame.index += 1
        return frame, step
      if frame.iteration + 1 < frame.iterations:
        frame.iteration += 1
        frame.index = 0
        continue
      self._stack.pop()
    return None

  def _iteration(self) -> Tuple[int, ...]:
    """ Iteration counters of the loops enclosing the current step in the current method. """
    iteration: List[int] = []
    for frame in reversed(self._stack):
      if frame.is_call:
        break
      iteration.insert(0, frame.iteration)
    return tuple(iteration)

  def step(self) -> Optional[ExecutionEvent]:
    """ Execute the next step.

    Returns:
      The event recorded for the step, or `None` if the run is over or was cancelled.
    """

    if self.done:
      return None
    if self._cancel.is_set():
      self._cancel.clear()
      self._trace._set_cancelled(True)
      logger.info("Simulation of '%s' cancelled after %d steps", self.entry_method,
                  len(self._trace))
      return None

    self._trace._set_state(EmulatorState.RUNNING)
    self._trace._set_cancelled(False)

    nxt = self._next_step()
    if nxt is None:
      self._trace._set_state(EmulatorState.COMPLETED)
      logger.info("Simulation of '%s' completed: %d steps, %s s simulated", self.entry_method,
                  len(self._trace), self._runtime.machine.clock)
      return None

    frame, step = nxt
    call_stack = self.call_stack
    self._path = frame.prefix + (frame.index - 1,)
    iteration = self._iteration()
    before = self._runtime.snapshot()

    outcome = self._execute(step)

    after = self._runtime.snapshot()
    event = ExecutionEvent(
      index=len(self._trace),
      method=frame.method,
      path=self._path,
      call_stack=call_stack,
      iteration=iteration,
      kind=step.kind,
      description=step.describe(),
      outcome=outcome,
      changes=diff_snapshots(before, after),
      timestamp=self._runtime.machine.clock,
      skipped=not step.enabled,
    )
    self._trace._record(event)
    logger.debug("[%d] %s %s: %s", event.index, frame.method, list(event.path),
                 event.description)

    if outcome.is_fatal:
      self._trace._set_state(EmulatorState.HALTED)
      logger.warning("Simulation of '%s' halted at step %d (%s %s): %s", self.entry_method,
                     event.index, frame.method, list(event.path), outcome.message)
    return event

  def _execute(self, step: Step) -> Outcome:
    """ Run the handler for `step` as one transaction on the runtime state. """

    if not step.enabled:
      return Outcome.success()

    self._warnings = []
    try:
      self._handlers[type(step)](step)
    except InterlockError as e:
      self._runtime.rollback()
      return Outcome.fatal(e.reason, str(e))
    except CallDepthExceeded as e:
      self._runtime.rollback()
      self._trace._set_error(e)
      return Outcome.fatal(CALL_DEPTH_EXCEEDED, str(e))

    self._runtime.commit()
    if len(self._warnings) > 0:
      return Outcome.warning(self._warnings[0][0], "; ".join(m for _, m in self._warnings))
    return Outcome.success()

  def run(self, max_steps: Optional[int] = None) -> Trace:
    """ Execute steps until the run completes, halts or is cancelled.

    Args:
      max_steps: Stop after this many steps, the emulator can be resumed afterwards.

    Returns:
      The trace of the run so far.
    """

    count = 0
    while not self.done and (max_steps is None or count < max_steps):
      if self.step() is None:
        break
      count += 1
    return self._trace

  def _warn(self, reason: str, message: str) -> None:
    self._warnings.append((reason, message))

  # Pipetting

  def _check_tip_set(self, tip_set: Optional[str], tips: MountedTips) -> None:
    if tip_set is not None and tip_set != tips.tip_set:
      raise TipSetMismatchError(f"Step uses tip set '{tip_set}', mounted is '{tips.tip_set}'.")

  def _aspirate(self, step: Aspirate) -> None:
    container = self._runtime.liquid_container_at(step.position)
    head = self._runtime.machine.head
    self._check_tip_set(step.tip_set, head.get_tips())
    trackers = self._runtime.well_trackers(container, step.wells)
    self._runtime.machine.move_head(step.position)

    if step.volume <= 0:
      self._warn("zero volume", f"Aspirate of 0 uL from {step.position}.")
      return
    for tracker in trackers:
      tracker.remove_liquid(step.volume)
    head.aspirate(step.volume)

  def _dispense(self, step: Dispense) -> None:
    container = self._runtime.liquid_container_at(step.position)
    head = self._runtime.machine.head
    tips = head.get_tips()
    self._check_tip_set(step.tip_set, tips)
    trackers = self._runtime.well_trackers(container, step.wells)
    self._runtime.machine.move_head(step.position)

    volume = tips.volume if step.dispense_all else step.volume
    if volume <= 0:
      self._warn("zero volume", f"Dispense of 0 uL into {step.position}.")
      return
    for tracker in trackers:
      tracker.add_liquid(volume)
    head.dispense(volume)

  def _mix(self, step: Mix) -> None:
    container = self._runtime.liquid_container_at(step.position)
    head = self._runtime.machine.head
    head.get_tips()
    trackers = self._runtime.well_trackers(container, step.wells)
    self._runtime.machine.move_head(step.position)

    if step.volume <= 0:
      self._warn("zero volume", f"Mix of 0 uL at {step.position}.")
      return
    # the net volume does not change, but every cycle must be able to take up `volume`
    for tracker in trackers:
      tracker.remove_liquid(step.volume)
      tracker.add_liquid(step.volume)
    head.aspirate(step.volume)
    head.dispense(step.volume)

  # Tips

  def _tip_pickup(self, step: TipPickup) -> None:
    box, tracker = self._runtime.tip_box_at(step.position)
    head = self._runtime.machine.head
    if head.has_tips:
      raise HasTipError(f"Cannot load tips from {box.identifier}, tip set "
                        f"'{head.get_tips().tip_set}' is already mounted.")

    count = box.size if step.tips is None else step.tips
    spots = tracker.take(count)
    head.add_tips(MountedTips(
      tip_set=step.tip_set or box.identifier,
      box=box.identifier,
      spots=spots,
      tip_volume=box.tip_volume,
    ))
    self._runtime.machine.move_head(step.position)

    left = tracker.available()
    if 0 < left < count:
      self._warn("low tips", f"{box.identifier} has {left} tips left.")

  def _tip_eject(self, step: TipEject) -> None:
    tips = self._runtime.machine.head.remove_tips()
    if tips.volume > TOLERANCE:
      self._warn("liquid in tips", f"Tips of '{tips.tip_set}' ejected holding {tips.volume} uL.")
    if step.position is None:
      return

    self._runtime.machine.move_head(step.position)
    identifier = self._runtime.deck.get(step.position)
    labware = None if identifier is None else self.application.get_labware(identifier)
    if not isinstance(labware, TipBox):
      return
    tracker = self._runtime.tip_boxes[labware.identifier]
    if labware.identifier == tips.box:
      tracker.put(tips.spots)
    else:
      tracker.fill(tips.count)

  # Labware handling and timed steps

  def _plate_move(self, step: PlateMove) -> None:
    self._runtime.deck.move(step.source, step.destination)
    self._runtime.machine.move_gripper(step.destination)
    self._runtime.machine.advance_clock(step.duration)

  def _wash(self, step: Wash) -> None:
    if step.labware is not None:
      self._runtime.require_on_deck(step.labware)
    self._runtime.machine.advance_clock(step.duration * step.cycles)

  def _incubate(self, step: Incubate) -> None:
    if step.labware is not None:
      self._runtime.require_on_deck(step.labware)
    self._runtime.machine.advance_clock(step.duration)

  def _shake(self, step: Shake) -> None:
    if step.labware is not None:
      self._runtime.require_on_deck(step.labware)
    self._runtime.machine.advance_clock(step.duration)

  def _pause(self, step: Pause) -> None:
    self._runtime.machine.advance_clock(step.duration)

  # Flow

  def _method_call(self, step: MethodCall) -> None:
    call_stack = self.call_stack
    if len(call_stack) + 1 > self.max_call_depth:
      raise CallDepthExceeded(self.max_call_depth, call_stack, step.method)
    method = self.application.get_method(step.method)
    self._stack.append(_Frame(method=method.name, steps=method.steps))

  def _loop(self, step: Loop) -> None:
    if step.iterations == 0 or len(step.body) == 0:
      return
    self._stack.append(_Frame(
      method=self._stack[-1].method,
      steps=step.body,
      prefix=self._path,
      iterations=step.iterations,
      is_call=False,
    ))

  def _remark(self, step: Remark) -> None:
    pass


def simulate(
  application: Application,
  entry_method: Optional[str] = None,
  config: Optional[Config] = None,
) -> Trace:
  """ Run `entry_method` of `application` to the end and return its trace.

  The result is deterministic: the same application and entry method always produce an equal trace.
  Interlocks end the run as `HALTED` with a Fatal last event; they are never raised.

  Raises:
    UnknownMethod: if the entry method does not exist.
  """

  return Emulator(application, entry_method, config=config).run()
