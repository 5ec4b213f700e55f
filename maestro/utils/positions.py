from string import ascii_uppercase as LETTERS
from typing import List, Tuple


def expand_string_range(range_str: str) -> List[str]:
  """Turns a range string into a list of well name strings. Horizontal, vertical, or grids.

  Args:
    range_str: A string showing a range, like "A1:C3".

  Returns:
    A list of well name strings, row letter first.
  """
  if ":" not in range_str:
    raise ValueError(f"Invalid range: {range_str}")

  start, end = range_str.split(":")
  start_row, start_col = split_well_name(start)
  end_row, end_col = split_well_name(end)
  col_range = (
    range(start_col, end_col + 1) if start_col < end_col else range(start_col, end_col - 1, -1)
  )
  row_range = (
    range(start_row, end_row + 1) if start_row < end_row else range(start_row, end_row - 1, -1)
  )
  return [f"{LETTERS[row]}{col}" for row in row_range for col in col_range]


def split_well_name(name: str) -> Tuple[int, int]:
  """ "B3" -> (1, 3): zero based row, one based column. """
  name = name.strip().upper()
  if len(name) < 2 or name[0] not in LETTERS or not name[1:].isdigit():
    raise ValueError(f"Invalid well name: {name}")
  return LETTERS.index(name[0]), int(name[1:])


def well_names(rows: int, columns: int) -> List[str]:
  """All well names of a `rows` x `columns` grid in row-major order: A1, A2, ..., B1, ... """
  if rows > len(LETTERS):
    raise ValueError(f"Cannot name more than {len(LETTERS)} rows, got {rows}")
  return [f"{LETTERS[r]}{c + 1}" for r in range(rows) for c in range(columns)]


def well_name_to_index(name: str, rows: int, columns: int) -> int:
  """Row-major index of a well name in a `rows` x `columns` grid.

  Raises:
    ValueError: if the name is malformed or outside the grid.
  """
  row, col = split_well_name(name)
  if row >= rows or not 1 <= col <= columns:
    raise ValueError(f"Well {name} is outside a {rows}x{columns} grid")
  return row * columns + (col - 1)


def index_to_well_name(index: int, columns: int) -> str:
  return f"{LETTERS[index // columns]}{index % columns + 1}"
