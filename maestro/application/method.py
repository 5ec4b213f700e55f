from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Tuple

from maestro.application.steps import MethodCall, Step, iter_nested
from maestro.application.variables import VariablesPool


@dataclass(frozen=True)
class Method:
  """ A named, ordered routine of steps.

  Variable references in the steps were resolved against `parameters`, then `local_variables`, then
  the application's global pool.

  Calls to other methods are `MethodCall` steps holding the callee's name. The name is resolved
  through the `Application`'s method table, so methods never hold references to each other.
  """

  name: str
  steps: Tuple[Step, ...] = ()
  description: str = ""
  local_variables: VariablesPool = field(default_factory=lambda: VariablesPool("LOCAL Variables"))
  parameters: VariablesPool = field(default_factory=lambda: VariablesPool("Parameters"))
  hidden: bool = False

  def __len__(self) -> int:
    return len(self.steps)

  def iter_steps(self) -> Iterator[Step]:
    """ Iterate over the top-level steps in execution order. Every call starts a new iteration. """
    yield from self.steps

  def walk(self) -> Iterator[Tuple[Tuple[int, ...], Step]]:
    """ Depth-first walk over all steps, including loop bodies, yielding `(path, step)`. The path
    holds one index per nesting level. """
    return iter_nested(self.steps)

  def step_at(self, path: Tuple[int, ...]) -> Step:
    """ Get the step at `path`, as yielded by `walk`.

    Raises:
      IndexError: if the path does not point to a step.
    """
    if len(path) == 0:
      raise IndexError("Empty step path")
    steps = self.steps
    step = steps[path[0]]
    for index in path[1:]:
      body = getattr(step, "body", None)
      if body is None:
        raise IndexError(f"Step path {path} descends into a step without body")
      step = body[index]
    return step

  def called_methods(self) -> Tuple[str, ...]:
    """ Names of the methods called by this method, in order of first appearance. """
    called = []
    for _, step in self.walk():
      if isinstance(step, MethodCall) and step.method not in called:
        called.append(step.method)
    return tuple(called)

  def serialize(self) -> dict:
    return {
      "type": self.__class__.__name__,
      "name": self.name,
      "description": self.description,
      "hidden": self.hidden,
      "local_variables": self.local_variables.serialize(),
      "parameters": self.parameters.serialize(),
      "steps": [step.serialize() for step in self.steps],
    }
