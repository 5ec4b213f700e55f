from .query import (
  ApplicationQuery,
  event_at,
  first_fatal,
  snapshot_at,
  trace_summary,
  warnings,
)
