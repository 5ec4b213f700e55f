from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

VariableValue = Union[float, int, str, bool]


@dataclass(frozen=True)
class Variable:
  """ A named value from a variables pool. Instruction fields can reference it by name. """

  name: str
  value: VariableValue

  def serialize(self) -> dict:
    return {"type": self.__class__.__name__, "name": self.name, "value": self.value}


@dataclass(frozen=True)
class VariablesPool:
  """ A designated pool of variables: the application's global pool or a method's local pool. """

  designation: str
  variables: Tuple[Variable, ...] = ()

  def get(self, name: str) -> Variable:
    for variable in self.variables:
      if variable.name == name:
        return variable
    raise KeyError(name)

  def __contains__(self, name: object) -> bool:
    return any(variable.name == name for variable in self.variables)

  def __len__(self) -> int:
    return len(self.variables)

  def serialize(self) -> dict:
    return {
      "type": self.__class__.__name__,
      "designation": self.designation,
      "variables": [variable.serialize() for variable in self.variables],
    }
