from .positions import (
  expand_string_range,
  split_well_name,
  index_to_well_name,
  well_name_to_index,
  well_names,
)
