""" Static analysis of the method call graph. """

import enum
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple


class _Color(enum.Enum):
  WHITE = 0  # not visited
  GREY = 1  # on the current DFS path
  BLACK = 2  # finished


def find_cycle(graph: Mapping[str, Sequence[str]]) -> Optional[List[str]]:
  """ Find a cycle in a call graph.

  Depth-first search with white/grey/black colouring. Reaching a grey node means the node is still
  on the current path, so the path from that node back to itself is a cycle. The search keeps an
  explicit stack, so deep call chains do not hit the interpreter's recursion limit.

  Args:
    graph: Maps each method name to the names it calls. Callees missing from the mapping are
      treated as leaves.

  Returns:
    The cycle as a list of names starting and ending with the same name, or `None`.
  """

  color: Dict[str, _Color] = {node: _Color.WHITE for node in graph}

  for root in graph:
    if color[root] is not _Color.WHITE:
      continue

    path: List[str] = [root]
    stack: List[Tuple[str, Iterator[str]]] = [(root, iter(graph[root]))]
    color[root] = _Color.GREY

    while stack:
      node, callees = stack[-1]
      callee = next(callees, None)
      if callee is None:
        color[node] = _Color.BLACK
        stack.pop()
        path.pop()
        continue

      callee_color = color.get(callee, _Color.BLACK)
      if callee_color is _Color.GREY:
        return path[path.index(callee):] + [callee]
      if callee_color is _Color.WHITE:
        color[callee] = _Color.GREY
        path.append(callee)
        stack.append((callee, iter(graph[callee])))

  return None


def call_depth(graph: Mapping[str, Sequence[str]], root: str) -> int:
  """ Length of the longest call chain starting at `root`, counting `root` itself. The graph must
  be acyclic. Like `find_cycle`, the walk keeps an explicit stack. """

  depths: Dict[str, int] = {}
  stack: List[Tuple[str, Iterator[str]]] = [(root, iter(graph.get(root, ())))]

  while stack:
    node, callees = stack[-1]
    callee = next(callees, None)
    if callee is None:
      # all callees are finished, so their depths are known
      depths[node] = 1 + max((depths[c] for c in graph.get(node, ()) if c in graph), default=0)
      stack.pop()
    elif callee in graph and callee not in depths:
      stack.append((callee, iter(graph[callee])))

  return depths[root]
