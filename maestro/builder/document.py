""" Typed access to fields of a decoded application document.

The decoder hands over a tree of mappings, sequences and scalar values. Values decoded from the
export's XML often arrive as text, so numbers and booleans are also accepted in their text form.
Booleans follow the export's convention where `0` is false and `-1` (or `1`) is true.
"""

import math
from typing import Any, Callable, List, Mapping, Optional, Sequence

from maestro.builder.errors import MalformedField, MissingField

_MISSING = object()

_TRUE_STRINGS = {"-1", "1", "true", "yes"}
_FALSE_STRINGS = {"0", "false", "no", ""}


def join_path(parent: Optional[str], key: str) -> str:
  if not parent:
    return key
  if key.startswith("["):
    return f"{parent}{key}"
  return f"{parent}.{key}"


def get_field(node: Mapping, key: str, path: Optional[str], default: Any = _MISSING,
              error: Callable[..., Exception] = MissingField) -> Any:
  """ Get `key` from `node`. A missing key (or an explicit `None`) returns `default`, or raises
  `MissingField` when no default is given. """
  value = node.get(key) if isinstance(node, Mapping) else None
  if value is None:
    if default is _MISSING:
      raise error(f"Required field '{key}' is missing", join_path(path, key))
    return default
  return value


def as_mapping(value: Any, path: str, error=MalformedField) -> Mapping:
  if not isinstance(value, Mapping):
    raise error(f"Expected a record, got {type(value).__name__}", path)
  return value


def as_list(value: Any, path: str, error=MalformedField) -> List:
  if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
    raise error(f"Expected a list, got {type(value).__name__}", path)
  return list(value)


def as_str(value: Any, path: str, error=MalformedField) -> str:
  if isinstance(value, bool) or not isinstance(value, (str, int, float)):
    raise error(f"Expected text, got {type(value).__name__}", path)
  return str(value).strip() if isinstance(value, str) else str(value)


def as_float(value: Any, path: str, error=MalformedField, minimum: Optional[float] = 0) -> float:
  """ Convert to a finite float, not below `minimum` (unless `minimum` is None). """
  if isinstance(value, bool):
    raise error(f"Expected a number, got {value!r}", path)
  if isinstance(value, str):
    try:
      value = float(value.strip())
    except ValueError as e:
      raise error(f"Expected a number, got {value!r}", path) from e
  if not isinstance(value, (int, float)):
    raise error(f"Expected a number, got {type(value).__name__}", path)
  value = float(value)
  if not math.isfinite(value):
    raise error(f"Expected a finite number, got {value}", path)
  if minimum is not None and value < minimum:
    raise error(f"Expected a number >= {minimum}, got {value}", path)
  return value


def as_int(value: Any, path: str, error=MalformedField, minimum: Optional[int] = 0) -> int:
  """ Convert to an int, not below `minimum`. Floats are accepted only when integral. """
  number = as_float(value, path, error=error, minimum=None)
  if not number.is_integer():
    raise error(f"Expected an integer, got {value!r}", path)
  result = int(number)
  if minimum is not None and result < minimum:
    raise error(f"Expected an integer >= {minimum}, got {result}", path)
  return result


def as_bool(value: Any, path: str, error=MalformedField) -> bool:
  if isinstance(value, bool):
    return value
  if isinstance(value, int) and value in (-1, 0, 1):
    return value != 0
  if isinstance(value, str):
    text = value.strip().lower()
    if text in _TRUE_STRINGS:
      return True
    if text in _FALSE_STRINGS:
      return False
  raise error(f"Expected a boolean, got {value!r}", path)


def format_version(value: Any, path: str) -> str:
  """ Normalize the format version: `6.8` and `"6.8"` both become `"6.8"`. """
  if isinstance(value, bool) or not isinstance(value, (str, int, float)):
    raise MalformedField(f"Expected a version number, got {value!r}", path)
  return str(value).strip()
