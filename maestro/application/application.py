""" The in-memory model of an exported Maestro application. """

from __future__ import annotations

from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Sequence, Tuple

from maestro.application.deck import DeckLayout
from maestro.application.errors import UnknownLabware, UnknownMethod
from maestro.application.labware import Labware
from maestro.application.method import Method
from maestro.application.steps import Step
from maestro.application.variables import VariablesPool


class Application:
  """ A protocol loaded from an exported application file.

  Owns its methods, the labware library and the deck layout. An `Application` is immutable once
  built: all state that changes while a protocol runs lives in the emulator's runtime state, so one
  `Application` can be shared by any number of simulation runs.

  Use `maestro.builder.build` to create an `Application` from a document; the builder checks all
  structural invariants before an `Application` is constructed.
  """

  def __init__(
    self,
    name: str,
    format_version: str,
    methods: Sequence[Method],
    deck: DeckLayout,
    labware: Sequence[Labware],
    startup_method: Optional[str] = None,
    build_number: Optional[int] = None,
    global_variables: Optional[VariablesPool] = None,
  ):
    self._name = name
    self._format_version = format_version
    self._build_number = build_number
    self._methods: Tuple[Method, ...] = tuple(methods)
    self._method_table: Mapping[str, Method] = MappingProxyType({m.name: m for m in methods})
    self._labware: Mapping[str, Labware] = MappingProxyType({lw.identifier: lw for lw in labware})
    self._deck = deck
    self._global_variables = global_variables if global_variables is not None else \
      VariablesPool("GLOBAL Variables")
    if startup_method is None and len(self._methods) > 0:
      startup_method = self._methods[0].name
    self._startup_method = startup_method

  @property
  def name(self) -> str:
    return self._name

  @property
  def format_version(self) -> str:
    return self._format_version

  @property
  def build_number(self) -> Optional[int]:
    return self._build_number

  @property
  def startup_method(self) -> Optional[str]:
    """ The method run when the application starts, by default the first method. """
    return self._startup_method

  @property
  def deck(self) -> DeckLayout:
    return self._deck

  @property
  def methods(self) -> Tuple[Method, ...]:
    return self._methods

  @property
  def labware(self) -> Mapping[str, Labware]:
    return self._labware

  @property
  def global_variables(self) -> VariablesPool:
    return self._global_variables

  def method_names(self) -> Tuple[str, ...]:
    return tuple(m.name for m in self._methods)

  def has_method(self, name: str) -> bool:
    return name in self._method_table

  def get_method(self, name: str) -> Method:
    """ Look up a method by name.

    Raises:
      UnknownMethod: if the application has no method called `name`.
    """

    try:
      return self._method_table[name]
    except KeyError as e:
      raise UnknownMethod(f"Method '{name}' does not exist in application '{self.name}'") from e

  def steps(self, method: str) -> Iterator[Step]:
    """ Lazily iterate over the top-level steps of a method. """
    return self.get_method(method).iter_steps()

  def called_methods(self, method: str) -> Tuple[str, ...]:
    return self.get_method(method).called_methods()

  def get_labware(self, identifier: str) -> Labware:
    """ Look up labware by identifier.

    Raises:
      UnknownLabware: if the labware library has no such identifier.
    """

    try:
      return self._labware[identifier]
    except KeyError as e:
      raise UnknownLabware(f"Labware '{identifier}' does not exist in application '{self.name}'") \
        from e

  def labware_at(self, position: str) -> Optional[Labware]:
    """ The labware at `position` at protocol start, `None` for an empty position.

    Raises:
      UnknownPosition: if the deck has no such position.
    """

    identifier = self._deck.get(position)
    return None if identifier is None else self.get_labware(identifier)

  def serialize(self) -> dict:
    return {
      "type": self.__class__.__name__,
      "name": self.name,
      "format_version": self.format_version,
      "build_number": self.build_number,
      "startup_method": self.startup_method,
      "global_variables": self.global_variables.serialize(),
      "labware": [lw.serialize() for lw in self._labware.values()],
      "deck": self.deck.serialize(),
      "methods": [m.serialize() for m in self.methods],
    }

  def __repr__(self) -> str:
    return f"Application(name={self.name!r}, format_version={self.format_version!r}, " \
      f"methods={list(self.method_names())!r})"
