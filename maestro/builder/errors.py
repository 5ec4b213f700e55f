from typing import Optional, Sequence


class BuildError(Exception):
  """ Base class for errors that stop an application from being built. No `Application` is
  produced when a `BuildError` is raised.

  Attributes:
    path: Location of the offending field in the document, like
      `Application.Methods[0].Instructions[2].Volume`.
  """

  def __init__(self, message: str, path: Optional[str] = None):
    super().__init__(f"{path}: {message}" if path else message)
    self.message = message
    self.path = path


class MissingField(BuildError):
  """ Raised when a required field is absent from the document. """


class MalformedField(BuildError):
  """ Raised when a field has the wrong type or a value outside its allowed range. """


class MalformedStep(MalformedField):
  """ Raised when an instruction has the wrong parameter shape for its command. """


class UnresolvedReference(BuildError):
  """ Raised when a deck position, labware identifier, variable or method name does not resolve.
  """


class DuplicateDefinition(BuildError):
  """ Raised when a method, labware, deck position or variable is defined twice. """


class UnsupportedVersion(BuildError):
  """ Raised when the document's format version is not one the builder knows. """


class CyclicMethodCall(BuildError):
  """ Raised when methods call each other in a cycle, like A -> B -> A.

  Attributes:
    cycle: The method names along the cycle, first and last entry being the same.
  """

  def __init__(self, cycle: Sequence[str], path: Optional[str] = None):
    super().__init__(f"Cyclic method call: {' -> '.join(cycle)}", path)
    self.cycle = tuple(cycle)
