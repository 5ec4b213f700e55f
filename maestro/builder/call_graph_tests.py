import unittest

from maestro.builder.call_graph import call_depth, find_cycle


class CallGraphTests(unittest.TestCase):
  """ Tests for call graph cycle detection. """

  def test_acyclic(self):
    graph = {"Main": ["A", "B"], "A": ["B"], "B": []}
    self.assertIsNone(find_cycle(graph))

  def test_diamond_is_not_a_cycle(self):
    graph = {"Main": ["A", "B"], "A": ["C"], "B": ["C"], "C": []}
    self.assertIsNone(find_cycle(graph))

  def test_mutual_recursion(self):
    graph = {"Main": ["A"], "A": ["B"], "B": ["A"]}
    self.assertEqual(find_cycle(graph), ["A", "B", "A"])

  def test_self_call(self):
    self.assertEqual(find_cycle({"Main": ["Main"]}), ["Main", "Main"])

  def test_unknown_callee_is_leaf(self):
    self.assertIsNone(find_cycle({"Main": ["Missing"]}))

  def test_long_chain_does_not_overflow(self):
    n = 5000
    graph = {f"m{i}": [f"m{i + 1}"] for i in range(n)}
    graph[f"m{n}"] = ["m0"]
    cycle = find_cycle(graph)
    assert cycle is not None
    self.assertEqual(cycle[0], cycle[-1])
    self.assertEqual(len(cycle), n + 2)

  def test_call_depth(self):
    graph = {"Main": ["A", "B"], "A": ["B"], "B": []}
    self.assertEqual(call_depth(graph, "Main"), 3)
    self.assertEqual(call_depth(graph, "B"), 1)

  def test_call_depth_diamond(self):
    graph = {"Main": ["A", "B"], "A": ["C"], "B": ["C"], "C": ["D"], "D": []}
    self.assertEqual(call_depth(graph, "Main"), 4)

  def test_call_depth_unknown_callee_is_ignored(self):
    self.assertEqual(call_depth({"Main": ["Missing"]}, "Main"), 1)

  def test_call_depth_long_chain_does_not_overflow(self):
    n = 5000
    graph = {f"m{i}": [f"m{i + 1}"] for i in range(n)}
    graph[f"m{n}"] = []
    self.assertEqual(call_depth(graph, "m0"), n + 1)
