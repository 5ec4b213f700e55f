""" Tests for the emulator """

import threading
import unittest

from maestro.builder import build
from maestro.builder.documents_tests import make_document, method, tip_box
from maestro.config import Config
from maestro.emulator import (
  CallDepthExceeded,
  Emulator,
  EmulatorState,
  OutcomeStatus,
  simulate,
)
from maestro.application import StepKind, UnknownMethod


def pickup(position="C3", **kwargs):
  return {"Command": "TipPickup", "DeckPosition": position, **kwargs}


def aspirate(volume, position="C4", **kwargs):
  return {"Command": "Aspirate", "DeckPosition": position, "Volume": volume, **kwargs}


def dispense(volume, position="D4", **kwargs):
  return {"Command": "Dispense", "DeckPosition": position, "Volume": volume, **kwargs}


def eject(position=None):
  node = {"Command": "TipEject"}
  if position is not None:
    node["DeckPosition"] = position
  return node


def run(*methods, **kwargs):
  return simulate(build(make_document(list(methods), **kwargs)))


class EmulatorTests(unittest.TestCase):
  """ Tests for running applications. """

  def test_pickup_and_aspirate(self):
    trace = run(method("Main", [pickup(), aspirate(50)]))
    self.assertEqual(trace.state, EmulatorState.COMPLETED)
    self.assertEqual([e.outcome.status for e in trace], [OutcomeStatus.SUCCESS] * 2)
    final = trace.final_snapshot()
    self.assertEqual(final["volume/P1/A1"], 50)
    self.assertEqual(final["volume/P1/H12"], 50)
    self.assertEqual(final["head/volume"], 50)
    self.assertEqual(final["head/tip_set"], "T1")
    self.assertEqual(final["tips/T1"], "0" * 96)

  def test_insufficient_volume_halts(self):
    emulator = Emulator(build(make_document([method("Main", [
      pickup(), aspirate(150), dispense(10),
    ])])))
    trace = emulator.run()
    self.assertEqual(trace.state, EmulatorState.HALTED)
    self.assertEqual(len(trace), 2)
    self.assertEqual(trace[0].outcome.status, OutcomeStatus.SUCCESS)
    fatal = trace[1]
    self.assertEqual(fatal.outcome.status, OutcomeStatus.FATAL)
    self.assertEqual(fatal.outcome.reason, "insufficient volume")
    self.assertEqual(fatal.changes, ())

    # the pickup stays, the failed aspirate left no trace
    runtime = emulator.runtime
    self.assertEqual(runtime.wells["P1"]["A1"].volume, 100)
    self.assertEqual(runtime.machine.head.tips.count, 96)
    self.assertEqual(runtime.machine.head.tips.volume, 0)
    self.assertIsNone(emulator.step())

  def test_deck_collision(self):
    trace = run(method("Main", [
      {"Command": "PlateMove", "SourcePosition": "C4", "DestinationPosition": "D5"},
      {"Command": "PlateMove", "SourcePosition": "D5", "DestinationPosition": "D4"},
      {"Command": "Pause", "Duration": 5},
    ]))
    self.assertEqual(trace.state, EmulatorState.HALTED)
    self.assertEqual(len(trace), 2)
    self.assertEqual(trace[1].outcome.reason, "deck collision")
    final = trace.final_snapshot()
    self.assertIsNone(final["deck/C4"])
    self.assertEqual(final["deck/D5"], "P1")
    self.assertEqual(final["deck/D4"], "P2")

  def test_move_from_empty_position(self):
    trace = run(method("Main", [
      {"Command": "PlateMove", "SourcePosition": "D5", "DestinationPosition": "C4"},
    ]))
    self.assertEqual(trace[0].outcome.reason, "empty position")

  def test_deterministic(self):
    document = make_document([
      method("Main", [
        pickup(tips=8),
        {"Command": "Loop", "Iterations": 3, "Instructions": [
          aspirate(20, Wells="A1:A8"),
          dispense(20, Wells=["B1", "B2"]),
          {"Command": "MethodCall", "Method": "Wait"},
        ]},
        eject("C3"),
      ]),
      method("Wait", [{"Command": "Incubate", "Duration": 30, "Temperature": 37}]),
    ])
    application = build(document)
    first = simulate(application)
    second = simulate(application)
    self.assertEqual(first.events, second.events)
    self.assertEqual(first.serialize(), second.serialize())

  def test_tips_needed(self):
    trace = run(method("Main", [aspirate(10)]))
    self.assertEqual(trace[0].outcome.reason, "no tips mounted")

  def test_tips_already_mounted(self):
    trace = run(method("Main", [pickup(tips=8), pickup(tips=8)]))
    self.assertEqual(trace[1].outcome.reason, "tips already mounted")
    self.assertEqual(trace.final_snapshot()["tips/T1"], "0" * 8 + "1" * 88)

  def test_empty_tip_box(self):
    trace = run(method("Main", [pickup(), eject(), pickup()]))
    self.assertEqual(trace.state, EmulatorState.HALTED)
    self.assertEqual(trace[2].outcome.reason, "insufficient tips")

  def test_low_tips_warning(self):
    trace = run(method("Main", [
      pickup(tips=40), eject(), pickup(tips=40), eject(), pickup(tips=8),
    ]))
    self.assertEqual(trace.state, EmulatorState.COMPLETED)
    self.assertEqual([e.outcome.status for e in trace], [
      OutcomeStatus.SUCCESS, OutcomeStatus.SUCCESS,
      OutcomeStatus.WARNING, OutcomeStatus.SUCCESS,
      OutcomeStatus.SUCCESS,
    ])
    self.assertEqual(trace[2].outcome.reason, "low tips")
    self.assertEqual(trace.warnings(), (trace[2],))

  def test_return_tips(self):
    trace = run(method("Main", [pickup(tips=8), eject("C3"), pickup(tips=8)]))
    self.assertEqual(trace.state, EmulatorState.COMPLETED)
    self.assertEqual(trace.snapshot_at(1)["tips/T1"], "1" * 96)
    self.assertEqual(trace.snapshot_at(1)["head/tips"], 0)
    self.assertEqual(trace.final_snapshot()["tips/T1"], "0" * 8 + "1" * 88)

  def test_return_tips_to_other_box(self):
    labware = [tip_box("T1"), tip_box("T2", tips_present=[])]
    positions = [{"DeckPosition": "C3", "LabwareID": "T1"},
                 {"DeckPosition": "C2", "LabwareID": "T2"}]
    trace = run(method("Main", [pickup(tips=4), eject("C2")]), labware=labware,
                positions=positions)
    self.assertEqual(trace.final_snapshot()["tips/T2"], "1111" + "0" * 92)

  def test_liquid_in_tips_warning(self):
    trace = run(method("Main", [pickup(), aspirate(10), eject()]))
    self.assertEqual(trace[2].outcome.status, OutcomeStatus.WARNING)
    self.assertEqual(trace[2].outcome.reason, "liquid in tips")

  def test_dispense(self):
    trace = run(method("Main", [
      pickup(tips=1), aspirate(30, Wells="A1"), dispense(20, Wells="H12"),
      {"Command": "Dispense", "DeckPosition": "D4", "Wells": "A1", "DispenseAll": True},
    ]))
    self.assertEqual(trace.state, EmulatorState.COMPLETED)
    final = trace.final_snapshot()
    self.assertEqual(final["volume/P1/A1"], 70)
    self.assertEqual(final["volume/P2/H12"], 20)
    self.assertEqual(final["volume/P2/A1"], 10)
    self.assertEqual(final["head/volume"], 0)

  def test_dispense_over_capacity(self):
    trace = run(method("Main", [
      pickup(tips=1),
      aspirate(150, position="B1"),
      dispense(150, position="C4", Wells="A1"),
    ]))
    self.assertEqual(trace[2].outcome.reason, "insufficient capacity")

  def test_aspirate_over_tip_capacity(self):
    trace = run(method("Main", [pickup(tips=1), aspirate(250, position="B1")]))
    self.assertEqual(trace[1].outcome.reason, "tip capacity exceeded")

  def test_aspirate_from_tip_box(self):
    trace = run(method("Main", [pickup(tips=1), aspirate(10, position="C3")]))
    self.assertEqual(trace[1].outcome.reason, "invalid labware")

  def test_unknown_well(self):
    trace = run(method("Main", [pickup(tips=1), aspirate(10, position="B1", Wells="B1")]))
    self.assertEqual(trace[1].outcome.reason, "unknown well")

  def test_zero_volume_warning(self):
    trace = run(method("Main", [pickup(tips=1), aspirate(0)]))
    self.assertEqual(trace[1].outcome.status, OutcomeStatus.WARNING)
    self.assertEqual(trace[1].outcome.reason, "zero volume")

  def test_tip_set_mismatch(self):
    trace = run(method("Main", [pickup(TipSet="Set1"), aspirate(10, TipSet="Set2")]))
    self.assertEqual(trace[1].outcome.reason, "tip set mismatch")

  def test_mix(self):
    trace = run(method("Main", [
      pickup(tips=1),
      {"Command": "Mix", "DeckPosition": "C4", "Volume": 50, "Cycles": 3, "Wells": "A1"},
      {"Command": "Mix", "DeckPosition": "D4", "Volume": 50, "Wells": "A1"},
    ]))
    self.assertEqual(trace[1].outcome.status, OutcomeStatus.SUCCESS)
    self.assertEqual([c.key for c in trace[1].changes], ["head/position"])
    self.assertEqual(trace[2].outcome.reason, "insufficient volume")

  def test_timed_steps(self):
    trace = run(method("Main", [
      {"Command": "Wash", "Duration": 10, "Cycles": 3},
      {"Command": "Incubate", "Duration": 60, "LabwareID": "P1"},
      {"Command": "Shake", "Duration": 5, "Speed": 1200},
      {"Command": "Pause", "Duration": 2.5},
      {"Command": "PlateMove", "SourcePosition": "C4", "DestinationPosition": "D5",
       "Duration": 4},
    ]))
    self.assertEqual([e.timestamp for e in trace], [30, 90, 95, 97.5, 101.5])
    self.assertEqual(trace.duration, 101.5)

  def test_labware_not_on_deck(self):
    labware = [tip_box("T1"), tip_box("T2")]
    positions = [{"DeckPosition": "C3", "LabwareID": "T1"}]
    trace = run(method("Main", [{"Command": "Incubate", "Duration": 5, "LabwareID": "T2"}]),
                labware=labware, positions=positions)
    self.assertEqual(trace[0].outcome.reason, "labware not on deck")
    self.assertEqual(trace[0].timestamp, 0)

  def test_loop_unrolls(self):
    trace = run(method("Main", [
      {"Command": "Loop", "Iterations": 3, "Instructions": [
        {"Command": "Pause", "Duration": 1},
        {"Command": "Loop", "Iterations": 2, "Instructions": [{"Command": "REM"}]},
      ]},
      {"Command": "Loop", "Iterations": 0, "Instructions": [{"Command": "Pause"}]},
    ]))
    kinds = [e.kind for e in trace]
    self.assertEqual(kinds.count(StepKind.PAUSE), 3)
    self.assertEqual(kinds.count(StepKind.REMARK), 6)
    self.assertEqual(kinds.count(StepKind.LOOP), 1 + 3 + 1)
    remarks = [e for e in trace if e.kind is StepKind.REMARK]
    self.assertEqual(remarks[0].path, (0, 1, 0))
    self.assertEqual(remarks[0].iteration, (0, 0))
    self.assertEqual(remarks[-1].iteration, (2, 1))

  def test_method_calls(self):
    trace = run(
      method("Main", [{"Command": "MethodCall", "Method": "A"}, {"Command": "Pause"}]),
      method("A", [{"Command": "Loop", "Iterations": 2, "Instructions": [
        {"Command": "MethodCall", "Method": "B"},
      ]}]),
      method("B", [{"Command": "Pause", "Duration": 1}]),
    )
    self.assertEqual(trace.state, EmulatorState.COMPLETED)
    self.assertEqual([(e.method, e.kind) for e in trace], [
      ("Main", StepKind.METHOD_CALL),
      ("A", StepKind.LOOP),
      ("A", StepKind.METHOD_CALL),
      ("B", StepKind.PAUSE),
      ("A", StepKind.METHOD_CALL),
      ("B", StepKind.PAUSE),
      ("Main", StepKind.PAUSE),
    ])
    self.assertEqual(trace[3].call_stack, ("Main", "A", "B"))
    self.assertEqual(trace[3].iteration, ())
    self.assertEqual(trace[4].iteration, (1,))
    self.assertEqual(trace[6].call_stack, ("Main",))

  def test_call_depth_exceeded(self):
    application = build(make_document([
      method("Main", [{"Command": "MethodCall", "Method": "A"}]),
      method("A", [{"Command": "MethodCall", "Method": "B"}]),
      method("B", [{"Command": "Pause", "Duration": 1}]),
    ]))
    config = Config(emulation=Config.Emulation(max_call_depth=2))
    trace = simulate(application, config=config)
    self.assertEqual(trace.state, EmulatorState.HALTED)
    self.assertEqual(trace[-1].outcome.reason, "call depth exceeded")
    self.assertIsInstance(trace.error, CallDepthExceeded)
    self.assertEqual(trace.error.call_stack, ("Main", "A"))
    self.assertEqual(simulate(application, config=Config()).state, EmulatorState.COMPLETED)

  def test_disabled_steps_are_skipped(self):
    trace = run(method("Main", [
      pickup(IsComment=True),
      aspirate(10, IsComment=-1),
      {"Command": "REM", "Comment": "nothing happens", "IsComment": True},
    ]))
    self.assertEqual(trace.state, EmulatorState.COMPLETED)
    self.assertTrue(all(e.skipped for e in trace))
    self.assertTrue(all(e.changes == () for e in trace))

  def test_entry_method(self):
    application = build(make_document([
      method("Main", [pickup()]),
      method("Other", [{"Command": "Pause", "Duration": 3}]),
    ]))
    trace = simulate(application, "Other")
    self.assertEqual(trace.entry_method, "Other")
    self.assertEqual(len(trace), 1)
    with self.assertRaises(UnknownMethod):
      simulate(application, "Missing")

  def test_empty_method(self):
    trace = run(method("Main", []))
    self.assertEqual(trace.state, EmulatorState.COMPLETED)
    self.assertEqual(len(trace), 0)
    self.assertEqual(trace.final_snapshot(), trace.initial_snapshot)


class EmulatorControlTests(unittest.TestCase):
  """ Tests for stepping, cancelling and replaying snapshots. """

  def setUp(self) -> None:
    super().setUp()
    self.application = build(make_document([method("Main", [
      pickup(tips=8),
      {"Command": "Loop", "Iterations": 4, "Instructions": [
        aspirate(10, Wells="A1:A8"),
        dispense(10, Wells="A1:A8"),
      ]},
      {"Command": "PlateMove", "SourcePosition": "D4", "DestinationPosition": "D5",
       "Duration": 8},
      eject("C3"),
    ])]))

  def test_step(self):
    emulator = Emulator(self.application)
    self.assertEqual(emulator.state, EmulatorState.READY)
    event = emulator.step()
    assert event is not None
    self.assertEqual(event.index, 0)
    self.assertEqual(event.kind, StepKind.TIP_PICKUP)
    self.assertEqual(emulator.state, EmulatorState.RUNNING)
    trace = emulator.run()
    self.assertEqual(trace.state, EmulatorState.COMPLETED)
    self.assertEqual(len(trace), 1 + 1 + 8 + 1 + 1)
    self.assertIsNone(emulator.step())

  def test_max_steps(self):
    emulator = Emulator(self.application)
    trace = emulator.run(max_steps=3)
    self.assertEqual(len(trace), 3)
    self.assertEqual(emulator.state, EmulatorState.RUNNING)
    emulator.run()
    self.assertEqual(emulator.state, EmulatorState.COMPLETED)

  def test_cancel_and_resume(self):
    emulator = Emulator(self.application)
    emulator.run(max_steps=2)
    emulator.cancel()
    trace = emulator.run()
    self.assertTrue(trace.cancelled)
    self.assertEqual(len(trace), 2)
    self.assertEqual(emulator.state, EmulatorState.RUNNING)

    trace = emulator.run()
    self.assertFalse(trace.cancelled)
    self.assertEqual(trace.state, EmulatorState.COMPLETED)
    self.assertEqual(trace.events, simulate(self.application).events)

  def test_cancel_from_other_thread(self):
    emulator = Emulator(self.application)
    thread = threading.Thread(target=emulator.cancel)
    thread.start()
    thread.join()
    trace = emulator.run()
    self.assertTrue(trace.cancelled)
    self.assertEqual(len(trace), 0)

  def test_snapshots_match_runtime(self):
    emulator = Emulator(self.application)
    index = 0
    while emulator.step() is not None:
      self.assertEqual(emulator.trace.snapshot_at(index), emulator.runtime.snapshot())
      index += 1
    self.assertEqual(emulator.trace.final_snapshot(), emulator.runtime.snapshot())

  def test_snapshot_index(self):
    trace = simulate(self.application)
    self.assertEqual(trace.snapshot_at(-1), trace.final_snapshot())
    with self.assertRaises(IndexError):
      trace.snapshot_at(len(trace))
    with self.assertRaises(IndexError):
      trace.snapshot_at(-len(trace) - 1)

  def test_resource_conservation(self):
    trace = simulate(self.application)
    for event in trace:
      for change in event.changes:
        if change.key.startswith("volume/"):
          self.assertGreaterEqual(change.after, 0)
          self.assertLessEqual(change.after, 200)

  def test_application_unchanged(self):
    before = self.application.serialize()
    simulate(self.application)
    self.assertEqual(self.application.serialize(), before)
