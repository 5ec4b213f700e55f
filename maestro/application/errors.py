class ModelError(Exception):
  """ Base class for lookups on an `Application` with a key that does not exist. """


class UnknownMethod(ModelError):
  """ Raised when a method name is not in the application's method table. """


class UnknownLabware(ModelError):
  """ Raised when a labware identifier is not in the application's labware library. """


class UnknownPosition(ModelError):
  """ Raised when a deck position is not part of the deck layout. """
