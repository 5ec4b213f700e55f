""" Tests for the query interface """

import threading
import unittest

from maestro.application import UnknownLabware, UnknownMethod
from maestro.builder import build
from maestro.builder.documents_tests import make_document, method
from maestro.emulator import EmulatorState
from maestro.query import (
  ApplicationQuery,
  event_at,
  first_fatal,
  snapshot_at,
  trace_summary,
  warnings,
)


class QueryTests(unittest.TestCase):
  """ Tests for `ApplicationQuery` and the trace projections. """

  def setUp(self) -> None:
    super().setUp()
    self.application = build(make_document([
      method("Main", [
        {"Command": "TipPickup", "DeckPosition": "C3", "Tips": 8},
        {"Command": "Loop", "Iterations": 2, "Instructions": [
          {"Command": "Aspirate", "DeckPosition": "C4", "Volume": 20, "Wells": "A1:A8"},
          {"Command": "MethodCall", "Method": "Transfer"},
        ]},
        {"Command": "TipEject", "IsComment": True},
      ], MethodDescription="Entry point"),
      method("Transfer", [
        {"Command": "Dispense", "DeckPosition": "D4", "Volume": 20, "Wells": "A1:A8"},
      ], Hidden=True),
      method("Broken", [
        {"Command": "TipPickup", "DeckPosition": "C3", "Tips": 90},
        {"Command": "Aspirate", "DeckPosition": "C4", "Volume": 150},
      ]),
    ]))
    self.query = ApplicationQuery(self.application)

  def test_list_methods(self):
    methods = self.query.list_methods()
    self.assertEqual([m["name"] for m in methods], ["Main", "Transfer", "Broken"])
    self.assertEqual(methods[0], {
      "name": "Main",
      "description": "Entry point",
      "steps": 3,
      "hidden": False,
      "startup": True,
      "calls": ["Transfer"],
    })
    self.assertTrue(methods[1]["hidden"])

  def test_method_detail(self):
    detail = self.query.method_detail("Main")
    self.assertEqual(detail["call_depth"], 2)
    self.assertEqual([s["path"] for s in detail["steps"]], [[0], [1], [1, 0], [1, 1], [2]])
    self.assertFalse(detail["steps"][-1]["enabled"])
    with self.assertRaises(UnknownMethod):
      self.query.method_detail("Wash2")

  def test_list_steps(self):
    steps = self.query.list_steps("Transfer")
    self.assertEqual(steps, [{
      "path": [0],
      "kind": "Dispense",
      "description": "Dispense 20.0 uL into D4 (A1,A2,A3,A4,A5,A6,A7,A8)",
      "enabled": True,
      "comment": "",
    }])

  def test_deck_layout(self):
    self.assertEqual(self.query.deck_layout()[0], {"position": "C3", "labware": "T1",
                                                   "type": "TipBox"})
    self.assertEqual(self.query.deck_layout()[-1], {"position": "D5", "labware": None,
                                                    "type": None})

  def test_labware(self):
    self.assertEqual(self.query.labware("P1")["total_volume"], 9600)
    self.assertEqual(self.query.labware("P1")["position"], "C4")
    self.assertEqual(self.query.labware("T1")["tip_count"], 96)
    with self.assertRaises(UnknownLabware):
      self.query.labware("X")

  def test_simulate_is_cached(self):
    trace = self.query.simulate()
    self.assertIs(self.query.simulate("Main"), trace)
    self.assertIsNot(self.query.simulate("Broken"), trace)
    self.assertEqual(trace.entry_method, "Main")

  def test_cached_trace_is_read_only(self):
    trace = self.query.simulate()
    with self.assertRaises(AttributeError):
      trace.state = EmulatorState.HALTED  # type: ignore[misc]
    with self.assertRaises(AttributeError):
      trace.cancelled = True  # type: ignore[misc]
    with self.assertRaises(AttributeError):
      trace.error = None  # type: ignore[misc]
    self.assertEqual(self.query.trace()["state"], "Completed")
    self.assertFalse(self.query.trace()["summary"]["cancelled"])

  def test_method_detail_of_long_call_chain(self):
    n = 1500
    methods = [method(f"M{i}", [{"Command": "MethodCall", "Method": f"M{i + 1}"}])
               for i in range(n)]
    methods.append(method(f"M{n}", []))
    query = ApplicationQuery(build(make_document(methods)))
    self.assertEqual(query.method_detail("M0")["call_depth"], n + 1)

  def test_concurrent_simulations(self):
    results = {}

    def worker(name):
      results[name] = self.query.simulate(name)

    threads = [threading.Thread(target=worker, args=(name,)) for name in ("Main", "Broken")]
    for thread in threads:
      thread.start()
    for thread in threads:
      thread.join()
    self.assertEqual(results["Main"].state.value, "Completed")
    self.assertEqual(results["Broken"].state.value, "Halted")

  def test_projections(self):
    trace = self.query.simulate()
    self.assertEqual(len(trace), 1 + 1 + 2 * 3 + 1)
    self.assertIsNone(first_fatal(trace))
    self.assertEqual(warnings(trace), ())
    self.assertEqual(event_at(trace, -1).kind.value, "TipEject")
    self.assertTrue(event_at(trace, -1).skipped)
    snapshot = snapshot_at(trace, len(trace) - 1)
    self.assertEqual(snapshot["volume/P1/A1"], 60)
    self.assertEqual(snapshot["volume/P2/A8"], 40)
    self.assertEqual(snapshot["volume/P1/B1"], 100)
    with self.assertRaises(IndexError):
      event_at(trace, len(trace))
    with self.assertRaises(IndexError):
      snapshot_at(trace, 100)

  def test_first_fatal(self):
    trace = self.query.simulate("Broken")
    fatal = first_fatal(trace)
    assert fatal is not None
    self.assertEqual(fatal.index, 1)
    self.assertEqual(fatal.outcome.reason, "insufficient volume")
    self.assertEqual(warnings(trace)[0].outcome.reason, "low tips")

  def test_summary(self):
    summary = trace_summary(self.query.simulate("Broken"))
    self.assertEqual(summary["state"], "Halted")
    self.assertEqual(summary["outcomes"], {"Success": 0, "Warning": 1, "Fatal": 1})
    self.assertEqual(summary["first_fatal"]["outcome"]["reason"], "insufficient volume")

  def test_trace(self):
    data = self.query.trace()
    self.assertEqual(data["state"], "Completed")
    self.assertEqual(data["summary"]["skipped"], 1)
    self.assertEqual(len(data["events"]), 9)

  def test_reads_are_idempotent(self):
    before = self.application.serialize()
    self.assertEqual(self.query.list_methods(), self.query.list_methods())
    self.assertEqual(self.query.trace("Main"), self.query.trace("Main"))
    self.assertEqual(self.application.serialize(), before)
