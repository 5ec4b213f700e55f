""" Builds an `Application` from a decoded application document. """

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from maestro.application import (
  Application,
  Aspirate,
  DeckLayout,
  Dispense,
  Incubate,
  Labware,
  Loop,
  Method,
  MethodCall,
  Mix,
  Pause,
  Plate,
  PlateMove,
  ReagentReservoir,
  Remark,
  Shake,
  Step,
  StepKind,
  TipBox,
  TipEject,
  TipPickup,
  Variable,
  VariablesPool,
  Wash,
  referenced_labware,
  referenced_positions,
)
from maestro.builder.call_graph import find_cycle
from maestro.builder.document import (
  as_bool,
  as_float,
  as_int,
  as_list,
  as_mapping,
  as_str,
  format_version,
  get_field,
  join_path,
)
from maestro.builder.errors import (
  BuildError,
  CyclicMethodCall,
  DuplicateDefinition,
  MalformedField,
  MalformedStep,
  UnresolvedReference,
  UnsupportedVersion,
)
from maestro.utils.positions import expand_string_range, split_well_name, well_name_to_index

logger = logging.getLogger("maestro")

VERSION = "ExportedApplicationVersion"
BUILD = "ExportedApplicationBuild"
APP = "Application"
APP_NAME = "ApplicationName"
START_METHOD = "StartupMethod"
GLOBAL_VAR_POOL = "GlobalVariablesPool"
LOCAL_VAR_POOL = "LocalVariablesPool"
PARAMETERS = "Parameters"
VAR_POOL_DESIG = "VariablesPoolDesignation"
VARIABLES = "Variables"
VARIABLE_NAME = "VariableName"
VARIABLE_VALUE = "Value"
VARIABLE_REF = "Variable"
LABWARE = "Labware"
LABWARE_ID = "LabwareID"
LABWARE_TYPE = "LabwareType"
LABWARE_DESC = "Description"
ROWS = "Rows"
COLUMNS = "Columns"
WELL_CAPACITY = "WellCapacity"
INITIAL_VOLUME = "InitialVolume"
INITIAL_VOLUMES = "InitialVolumes"
TIP_VOLUME = "TipVolume"
TIPS_PRESENT = "TipsPresent"
DECK_LAYOUT = "DeckLayout"
LAYOUT_DESIG = "LayoutDesignation"
POSITIONS = "Positions"
DECK_POSITION = "DeckPosition"
METHODS = "Methods"
METHOD_DESIG = "MethodDesignation"
METHOD_DESC = "MethodDescription"
HIDDEN = "Hidden"
INSTRUCTIONS = "Instructions"
COMMAND = "Command"
IS_COMMENT = "IsComment"
NOTE = "Note"

SUPPORTED_VERSIONS: Tuple[str, ...] = ("6.8",)

# Command names used by Maestro exports for the same instructions.
COMMAND_ALIASES = {
  "LoadTips": StepKind.TIP_PICKUP,
  "EjectTips": StepKind.TIP_EJECT,
  "MovePlate": StepKind.PLATE_MOVE,
  "CallMethod": StepKind.METHOD_CALL,
  "REM": StepKind.REMARK,
}

DEFAULT_GEOMETRY = {
  "Plate": (8, 12),
  "TipBox": (8, 12),
  "ReagentReservoir": (1, 1),
}

LABWARE_TYPE_ALIASES = {
  "Reservoir": "ReagentReservoir",
  "Trough": "ReagentReservoir",
  "TipRack": "TipBox",
}


def _command_kind(command: str) -> Optional[StepKind]:
  if command in COMMAND_ALIASES:
    return COMMAND_ALIASES[command]
  for kind in StepKind:
    if kind.value == command:
      return kind
  return None


class ApplicationBuilder:
  """ Translates one decoded application document into an `Application`.

  The builder validates as it goes and raises the first `BuildError` it finds. It never returns a
  partially built application, and it never modifies the document. A builder is single use: create
  a new one per document (or call `build`).
  """

  def __init__(self, document: Mapping, supported_versions: Sequence[str] = SUPPORTED_VERSIONS):
    self.document = document
    self.supported_versions = tuple(supported_versions)
    self._used = False

    self._labware: Dict[str, Labware] = {}
    self._deck: Optional[DeckLayout] = None
    self._globals = VariablesPool("GLOBAL Variables")
    self._locals = VariablesPool("LOCAL Variables")
    self._parameters = VariablesPool("Parameters")
    self._calls: List[Tuple[str, str]] = []  # (callee, path of the call step)

    self._step_parsers: Dict[StepKind, Callable[[Mapping, str, bool, str], Step]] = {
      StepKind.ASPIRATE: self._parse_aspirate,
      StepKind.DISPENSE: self._parse_dispense,
      StepKind.MIX: self._parse_mix,
      StepKind.TIP_PICKUP: self._parse_tip_pickup,
      StepKind.TIP_EJECT: self._parse_tip_eject,
      StepKind.PLATE_MOVE: self._parse_plate_move,
      StepKind.WASH: self._parse_wash,
      StepKind.INCUBATE: self._parse_incubate,
      StepKind.SHAKE: self._parse_shake,
      StepKind.PAUSE: self._parse_pause,
      StepKind.METHOD_CALL: self._parse_method_call,
      StepKind.LOOP: self._parse_loop,
      StepKind.REMARK: self._parse_remark,
    }

  def build(self) -> Application:
    """ Build the application.

    Raises:
      BuildError: the first structural problem found in the document.
    """

    if self._used:
      raise RuntimeError("ApplicationBuilder.build can only be called once per builder.")
    self._used = True

    document = as_mapping(self.document, "<document>")
    version = self._check_version(document)
    build_number = None
    if document.get(BUILD) is not None:
      build_number = as_int(document[BUILD], BUILD)

    app = as_mapping(get_field(document, APP, None), APP)
    name = as_str(get_field(app, APP_NAME, APP, default="Application"), join_path(APP, APP_NAME))

    self._parse_labware_library(app)
    self._deck = self._parse_deck_layout(app)
    if app.get(GLOBAL_VAR_POOL) is not None:
      self._globals = self._parse_variables_pool(
        app[GLOBAL_VAR_POOL], join_path(APP, GLOBAL_VAR_POOL), "GLOBAL Variables")

    methods = self._parse_methods(app)
    self._resolve_calls(methods)
    self._check_call_graph(methods)

    startup = None
    if app.get(START_METHOD) is not None:
      startup = as_str(app[START_METHOD], join_path(APP, START_METHOD))
      if startup not in methods:
        raise UnresolvedReference(f"Startup method '{startup}' does not exist",
                                  join_path(APP, START_METHOD))

    application = Application(
      name=name,
      format_version=version,
      build_number=build_number,
      methods=list(methods.values()),
      deck=self._deck,
      labware=list(self._labware.values()),
      startup_method=startup,
      global_variables=self._globals,
    )
    logger.info("Built application '%s' (format %s): %d methods, %d labware, %d deck positions",
                name, version, len(methods), len(self._labware), len(self._deck))
    return application

  # Sections

  def _check_version(self, document: Mapping) -> str:
    version = format_version(get_field(document, VERSION, None), VERSION)
    if version not in self.supported_versions:
      raise UnsupportedVersion(
        f"Format version {version} is not supported (supported: "
        f"{', '.join(self.supported_versions)})", VERSION)
    return version

  def _parse_labware_library(self, app: Mapping) -> None:
    path = join_path(APP, LABWARE)
    for i, node in enumerate(as_list(get_field(app, LABWARE, APP, default=[]), path)):
      labware = self._parse_labware(node, join_path(path, f"[{i}]"))
      if labware.identifier in self._labware:
        raise DuplicateDefinition(f"Labware '{labware.identifier}' is defined twice",
                                  join_path(path, f"[{i}]"))
      self._labware[labware.identifier] = labware

  def _parse_labware(self, node: Any, path: str) -> Labware:
    node = as_mapping(node, path)
    identifier = as_str(get_field(node, LABWARE_ID, path), join_path(path, LABWARE_ID))
    labware_type = as_str(get_field(node, LABWARE_TYPE, path), join_path(path, LABWARE_TYPE))
    labware_type = LABWARE_TYPE_ALIASES.get(labware_type, labware_type)
    if labware_type not in DEFAULT_GEOMETRY:
      raise MalformedField(f"Unknown labware type '{labware_type}'", join_path(path, LABWARE_TYPE))

    default_rows, default_columns = DEFAULT_GEOMETRY[labware_type]
    rows = as_int(get_field(node, ROWS, path, default=default_rows), join_path(path, ROWS),
                  minimum=1)
    columns = as_int(get_field(node, COLUMNS, path, default=default_columns),
                     join_path(path, COLUMNS), minimum=1)
    if rows > 26:
      raise MalformedField(f"At most 26 rows are supported, got {rows}", join_path(path, ROWS))
    description = as_str(get_field(node, LABWARE_DESC, path, default=""),
                         join_path(path, LABWARE_DESC))

    if labware_type == "TipBox":
      tip_volume = as_float(get_field(node, TIP_VOLUME, path), join_path(path, TIP_VOLUME))
      tips_present = self._parse_tips_present(node.get(TIPS_PRESENT), rows, columns,
                                              join_path(path, TIPS_PRESENT))
      return TipBox(identifier=identifier, rows=rows, columns=columns, description=description,
                    tip_volume=tip_volume, tips_present=tips_present)

    capacity = as_float(get_field(node, WELL_CAPACITY, path), join_path(path, WELL_CAPACITY))
    volumes = self._parse_initial_volumes(node, rows, columns, capacity, path)
    klass = Plate if labware_type == "Plate" else ReagentReservoir
    return klass(identifier=identifier, rows=rows, columns=columns, description=description,
                 well_capacity=capacity, initial_volumes=volumes)

  def _parse_tips_present(self, value: Any, rows: int, columns: int, path: str
                          ) -> Tuple[bool, ...]:
    size = rows * columns
    if value is None:
      return (True,) * size
    if isinstance(value, (list, tuple)):
      present = [False] * size
      for name in value:
        present[self._well_index(name, rows, columns, path)] = True
      return tuple(present)
    count = as_int(value, path)
    if count > size:
      raise MalformedField(f"Tip box holds {size} tips, got {count}", path)
    return tuple(i < count for i in range(size))

  def _parse_initial_volumes(self, node: Mapping, rows: int, columns: int, capacity: float,
                             path: str) -> Tuple[float, ...]:
    volumes = [0.0] * (rows * columns)
    if node.get(INITIAL_VOLUME) is not None:
      volume = as_float(node[INITIAL_VOLUME], join_path(path, INITIAL_VOLUME))
      volumes = [volume] * (rows * columns)
    if node.get(INITIAL_VOLUMES) is not None:
      per_well_path = join_path(path, INITIAL_VOLUMES)
      for name, volume in as_mapping(node[INITIAL_VOLUMES], per_well_path).items():
        well_path = join_path(per_well_path, str(name))
        volumes[self._well_index(name, rows, columns, well_path)] = as_float(volume, well_path)
    for volume in volumes:
      if volume > capacity:
        raise MalformedField(f"Initial volume {volume} exceeds well capacity {capacity}", path)
    return tuple(volumes)

  def _well_index(self, name: Any, rows: int, columns: int, path: str) -> int:
    try:
      return well_name_to_index(as_str(name, path), rows, columns)
    except ValueError as e:
      raise MalformedField(str(e), path) from e

  def _parse_deck_layout(self, app: Mapping) -> DeckLayout:
    path = join_path(APP, DECK_LAYOUT)
    node = as_mapping(get_field(app, DECK_LAYOUT, APP), path)
    name = as_str(get_field(node, LAYOUT_DESIG, path, default="MainLayout"),
                  join_path(path, LAYOUT_DESIG))
    positions_path = join_path(path, POSITIONS)
    raw_positions = get_field(node, POSITIONS, path)

    entries: List[Tuple[Any, Any, str]] = []
    if isinstance(raw_positions, Mapping):
      for position, labware in raw_positions.items():
        entries.append((position, labware, join_path(positions_path, str(position))))
    else:
      for i, entry in enumerate(as_list(raw_positions, positions_path)):
        entry_path = join_path(positions_path, f"[{i}]")
        entry = as_mapping(entry, entry_path)
        entries.append((get_field(entry, DECK_POSITION, entry_path), entry.get(LABWARE_ID),
                        entry_path))

    positions: Dict[str, Optional[str]] = {}
    placed: Dict[str, str] = {}
    for raw_position, raw_labware, entry_path in entries:
      position = as_str(raw_position, entry_path)
      if position in positions:
        raise DuplicateDefinition(f"Deck position '{position}' is defined twice", entry_path)
      labware = None
      if raw_labware is not None:
        labware = as_str(raw_labware, entry_path)
        if labware not in self._labware:
          raise UnresolvedReference(f"Labware '{labware}' is not in the labware library",
                                    entry_path)
        if labware in placed:
          raise DuplicateDefinition(
            f"Labware '{labware}' is placed on both {placed[labware]} and {position}", entry_path)
        placed[labware] = position
      positions[position] = labware
    return DeckLayout(positions, name=name)

  def _parse_variables_pool(self, node: Any, path: str, default_designation: str
                            ) -> VariablesPool:
    node = as_mapping(node, path)
    designation = as_str(get_field(node, VAR_POOL_DESIG, path, default=default_designation),
                         join_path(path, VAR_POOL_DESIG))
    variables: List[Variable] = []
    variables_path = join_path(path, VARIABLES)
    for i, entry in enumerate(as_list(get_field(node, VARIABLES, path, default=[]),
                                      variables_path)):
      entry_path = join_path(variables_path, f"[{i}]")
      entry = as_mapping(entry, entry_path)
      name = as_str(get_field(entry, VARIABLE_NAME, entry_path), join_path(entry_path,
                                                                          VARIABLE_NAME))
      value = get_field(entry, VARIABLE_VALUE, entry_path)
      if not isinstance(value, (str, int, float, bool)):
        raise MalformedField(f"Unsupported variable value {value!r}",
                             join_path(entry_path, VARIABLE_VALUE))
      if any(v.name == name for v in variables):
        raise DuplicateDefinition(f"Variable '{name}' is defined twice", entry_path)
      variables.append(Variable(name=name, value=value))
    return VariablesPool(designation=designation, variables=tuple(variables))

  def _parse_methods(self, app: Mapping) -> Dict[str, Method]:
    path = join_path(APP, METHODS)
    methods: Dict[str, Method] = {}
    for i, node in enumerate(as_list(get_field(app, METHODS, APP), path)):
      method = self._parse_method(node, join_path(path, f"[{i}]"))
      if method.name in methods:
        raise DuplicateDefinition(f"Method '{method.name}' is defined twice",
                                  join_path(path, f"[{i}]"))
      methods[method.name] = method
    return methods

  def _parse_method(self, node: Any, path: str) -> Method:
    node = as_mapping(node, path)
    name = as_str(get_field(node, METHOD_DESIG, path), join_path(path, METHOD_DESIG))
    description = as_str(get_field(node, METHOD_DESC, path, default=""),
                         join_path(path, METHOD_DESC))
    hidden = as_bool(get_field(node, HIDDEN, path, default=False), join_path(path, HIDDEN))
    self._locals = VariablesPool(f"{name}:LOCAL Variables")
    if node.get(LOCAL_VAR_POOL) is not None:
      self._locals = self._parse_variables_pool(node[LOCAL_VAR_POOL],
                                                join_path(path, LOCAL_VAR_POOL),
                                                f"{name}:LOCAL Variables")
    self._parameters = VariablesPool(f"{name}:Parameters")
    if node.get(PARAMETERS) is not None:
      self._parameters = self._parse_variables_pool(node[PARAMETERS], join_path(path, PARAMETERS),
                                                    f"{name}:Parameters")
    steps = self._parse_steps(get_field(node, INSTRUCTIONS, path, default=[]),
                              join_path(path, INSTRUCTIONS))
    logger.debug("Built method '%s' with %d top-level steps", name, len(steps))
    return Method(name=name, steps=steps, description=description,
                  local_variables=self._locals, parameters=self._parameters, hidden=hidden)

  # Cross references

  def _resolve_calls(self, methods: Mapping[str, Method]) -> None:
    for callee, path in self._calls:
      if callee not in methods:
        raise UnresolvedReference(f"Method '{callee}' does not exist", path)

  def _check_call_graph(self, methods: Mapping[str, Method]) -> None:
    graph = {name: method.called_methods() for name, method in methods.items()}
    cycle = find_cycle(graph)
    if cycle is not None:
      raise CyclicMethodCall(cycle, join_path(APP, METHODS))

  # Steps

  def _parse_steps(self, value: Any, path: str) -> Tuple[Step, ...]:
    return tuple(self._parse_step(node, join_path(path, f"[{i}]"))
                 for i, node in enumerate(as_list(value, path, error=MalformedStep)))

  def _parse_step(self, node: Any, path: str) -> Step:
    node = as_mapping(node, path, error=MalformedStep)
    command = as_str(get_field(node, COMMAND, path), join_path(path, COMMAND), error=MalformedStep)
    kind = _command_kind(command)
    if kind is None:
      raise MalformedStep(f"Unknown command '{command}'", join_path(path, COMMAND))

    enabled = not as_bool(get_field(node, IS_COMMENT, path, default=False),
                          join_path(path, IS_COMMENT), error=MalformedStep)
    comment = as_str(get_field(node, NOTE, path, default=""), join_path(path, NOTE),
                     error=MalformedStep)
    step = self._step_parsers[kind](node, path, enabled, comment)

    for position in referenced_positions(step):
      assert self._deck is not None
      if position not in self._deck:
        raise UnresolvedReference(f"Deck position '{position}' is not part of the deck layout",
                                  path)
    for labware in referenced_labware(step):
      if labware not in self._labware:
        raise UnresolvedReference(f"Labware '{labware}' is not in the labware library", path)
    return step

  def _text(self, node: Mapping, key: str, path: str, default: Any = ...) -> Any:
    if default is ...:
      value = get_field(node, key, path)
    else:
      value = get_field(node, key, path, default=default)
      if value is default:
        return default
    return as_str(value, join_path(path, key), error=MalformedStep)

  def _number(self, node: Mapping, key: str, path: str, default: Any = ...,
              integer: bool = False, minimum: Optional[float] = 0) -> Any:
    """ Read a numeric instruction field, resolving `{"Variable": name}` references against the
    method's parameters, then its local variables, then the global variables. """
    field_path = join_path(path, key)
    if default is ...:
      value = get_field(node, key, path)
    else:
      value = get_field(node, key, path, default=default)
      if value is default:
        return default
    if isinstance(value, Mapping):
      value = self._variable_value(value, field_path)
    if integer:
      return as_int(value, field_path, error=MalformedStep, minimum=int(minimum or 0))
    return as_float(value, field_path, error=MalformedStep, minimum=minimum)

  def _variable_value(self, ref: Mapping, path: str) -> Any:
    name = as_str(get_field(ref, VARIABLE_REF, path, error=MalformedStep),
                  join_path(path, VARIABLE_REF), error=MalformedStep)
    for pool in (self._parameters, self._locals, self._globals):
      if name in pool:
        value = pool.get(name).value
        if isinstance(value, bool):
          raise MalformedStep(f"Variable '{name}' is not numeric", path)
        return value
    raise UnresolvedReference(f"Variable '{name}' is not defined", path)

  def _wells(self, node: Mapping, path: str) -> Tuple[str, ...]:
    value = node.get("Wells")
    if value is None:
      return ()
    wells_path = join_path(path, "Wells")
    if isinstance(value, str):
      names: List[str] = []
      for part in value.split(","):
        part = part.strip()
        if part == "":
          continue
        try:
          names.extend(expand_string_range(part) if ":" in part else [part])
        except ValueError as e:
          raise MalformedStep(str(e), wells_path) from e
    else:
      names = [as_str(name, wells_path, error=MalformedStep)
               for name in as_list(value, wells_path, error=MalformedStep)]
    result = []
    for name in names:
      try:
        _, col = split_well_name(name)
      except ValueError as e:
        raise MalformedStep(str(e), wells_path) from e
      if col < 1:
        raise MalformedStep(f"Invalid well name: {name}", wells_path)
      normalized = f"{name.strip().upper()[0]}{col}"
      if normalized not in result:
        result.append(normalized)
    return tuple(result)

  def _parse_aspirate(self, node: Mapping, path: str, enabled: bool, comment: str) -> Step:
    return Aspirate(
      position=self._text(node, DECK_POSITION, path),
      volume=self._number(node, "Volume", path),
      wells=self._wells(node, path),
      tip_set=self._text(node, "TipSet", path, default=None),
      enabled=enabled,
      comment=comment,
    )

  def _parse_dispense(self, node: Mapping, path: str, enabled: bool, comment: str) -> Step:
    dispense_all = as_bool(get_field(node, "DispenseAll", path, default=False),
                           join_path(path, "DispenseAll"), error=MalformedStep)
    volume = self._number(node, "Volume", path, default=0.0) if dispense_all else \
      self._number(node, "Volume", path)
    return Dispense(
      position=self._text(node, DECK_POSITION, path),
      volume=volume,
      wells=self._wells(node, path),
      tip_set=self._text(node, "TipSet", path, default=None),
      dispense_all=dispense_all,
      enabled=enabled,
      comment=comment,
    )

  def _parse_mix(self, node: Mapping, path: str, enabled: bool, comment: str) -> Step:
    return Mix(
      position=self._text(node, DECK_POSITION, path),
      volume=self._number(node, "Volume", path),
      cycles=self._number(node, "Cycles", path, default=1, integer=True, minimum=1),
      wells=self._wells(node, path),
      enabled=enabled,
      comment=comment,
    )

  def _parse_tip_pickup(self, node: Mapping, path: str, enabled: bool, comment: str) -> Step:
    return TipPickup(
      position=self._text(node, DECK_POSITION, path),
      tip_set=self._text(node, "TipSet", path, default=None),
      tips=self._number(node, "Tips", path, default=None, integer=True, minimum=1),
      enabled=enabled,
      comment=comment,
    )

  def _parse_tip_eject(self, node: Mapping, path: str, enabled: bool, comment: str) -> Step:
    return TipEject(
      position=self._text(node, DECK_POSITION, path, default=None),
      enabled=enabled,
      comment=comment,
    )

  def _parse_plate_move(self, node: Mapping, path: str, enabled: bool, comment: str) -> Step:
    source = self._text(node, "SourcePosition", path)
    destination = self._text(node, "DestinationPosition", path)
    if source == destination:
      raise MalformedStep(f"Labware is moved from {source} onto itself", path)
    return PlateMove(
      source=source,
      destination=destination,
      duration=self._number(node, "Duration", path, default=0.0),
      enabled=enabled,
      comment=comment,
    )

  def _parse_wash(self, node: Mapping, path: str, enabled: bool, comment: str) -> Step:
    return Wash(
      duration=self._number(node, "Duration", path, default=0.0),
      cycles=self._number(node, "Cycles", path, default=1, integer=True, minimum=1),
      labware=self._text(node, LABWARE_ID, path, default=None),
      enabled=enabled,
      comment=comment,
    )

  def _parse_incubate(self, node: Mapping, path: str, enabled: bool, comment: str) -> Step:
    return Incubate(
      duration=self._number(node, "Duration", path),
      temperature=self._number(node, "Temperature", path, default=None, minimum=None),
      labware=self._text(node, LABWARE_ID, path, default=None),
      enabled=enabled,
      comment=comment,
    )

  def _parse_shake(self, node: Mapping, path: str, enabled: bool, comment: str) -> Step:
    return Shake(
      duration=self._number(node, "Duration", path),
      speed=self._number(node, "Speed", path, default=None),
      labware=self._text(node, LABWARE_ID, path, default=None),
      enabled=enabled,
      comment=comment,
    )

  def _parse_pause(self, node: Mapping, path: str, enabled: bool, comment: str) -> Step:
    return Pause(
      duration=self._number(node, "Duration", path, default=0.0),
      message=self._text(node, "Message", path, default=""),
      enabled=enabled,
      comment=comment,
    )

  def _parse_method_call(self, node: Mapping, path: str, enabled: bool, comment: str) -> Step:
    method = self._text(node, "Method", path)
    self._calls.append((method, path))
    return MethodCall(method=method, enabled=enabled, comment=comment)

  def _parse_loop(self, node: Mapping, path: str, enabled: bool, comment: str) -> Step:
    iterations = self._number(node, "Iterations", path, integer=True, minimum=0)
    body = self._parse_steps(get_field(node, INSTRUCTIONS, path, default=[]),
                             join_path(path, INSTRUCTIONS))
    return Loop(iterations=iterations, body=body, enabled=enabled, comment=comment)

  def _parse_remark(self, node: Mapping, path: str, enabled: bool, comment: str) -> Step:
    return Remark(text=self._text(node, "Comment", path, default=""), enabled=enabled,
                  comment=comment)


def build(document: Mapping, supported_versions: Sequence[str] = SUPPORTED_VERSIONS
          ) -> Application:
  """ Build an `Application` from a decoded application document.

  Args:
    document: The decoded document: nested mappings, lists and scalar values.
    supported_versions: Format versions the builder accepts.

  Raises:
    BuildError: if the document is malformed or violates a structural invariant. The subclass
      names the problem: `MissingField`, `MalformedField`, `MalformedStep`,
      `UnresolvedReference`, `DuplicateDefinition`, `CyclicMethodCall` or `UnsupportedVersion`.
  """

  try:
    return ApplicationBuilder(document, supported_versions=supported_versions).build()
  except BuildError as e:
    logger.warning("Failed to build application: %s", e)
    raise
