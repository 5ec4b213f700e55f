from .builder import ApplicationBuilder, SUPPORTED_VERSIONS, build
from .call_graph import find_cycle
from .errors import (
  BuildError,
  CyclicMethodCall,
  DuplicateDefinition,
  MalformedField,
  MalformedStep,
  MissingField,
  UnresolvedReference,
  UnsupportedVersion,
)
