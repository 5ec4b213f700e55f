from maestro.emulator.errors import TooLittleLiquidError, TooLittleVolumeError

# Volume comparisons tolerate floating point noise from repeated additions.
TOLERANCE = 1e-6


class VolumeTracker:
  """A volume tracker tracks operations that change the volume in a well and raises errors
  if the volume operations are invalid.

  Operations change the pending volume. `commit` makes the pending volume the volume, `rollback`
  discards pending operations.
  """

  def __init__(
    self,
    thing: str,
    max_volume: float,
    initial_volume: float = 0,
  ) -> None:
    self.thing = thing
    self.max_volume = max_volume
    self.volume = initial_volume
    self.pending_volume = initial_volume

  def remove_liquid(self, volume: float) -> None:
    """Remove liquid from the well."""

    if (volume - self.get_used_volume()) > TOLERANCE:
      raise TooLittleLiquidError(
        f"Not enough liquid in {self.thing}: {volume}uL > {self.get_used_volume()}uL."
      )

    self.pending_volume = max(self.pending_volume - volume, 0)

  def add_liquid(self, volume: float) -> None:
    """Add liquid to the well."""

    if (volume - self.get_free_volume()) > TOLERANCE:
      raise TooLittleVolumeError(
        f"Not enough space in {self.thing}: {volume}uL > {self.get_free_volume()}uL."
      )

    self.pending_volume = min(self.pending_volume + volume, self.max_volume)

  def get_used_volume(self) -> float:
    """Get the used volume of the well. Note that this includes pending operations."""
    return self.pending_volume

  def get_free_volume(self) -> float:
    """Get the free volume of the well. Note that this includes pending operations."""
    return self.max_volume - self.get_used_volume()

  def commit(self) -> None:
    """Commit the pending operations."""
    self.volume = self.pending_volume

  def rollback(self) -> None:
    """Rollback the pending operations."""
    self.pending_volume = self.volume

  def serialize(self) -> dict:
    """Serialize the volume tracker."""
    return {
      "volume": self.volume,
      "pending_volume": self.pending_volume,
      "thing": self.thing,
      "max_volume": self.max_volume,
    }

  def __repr__(self) -> str:
    return f"VolumeTracker({self.thing}, volume={self.volume}, max_volume={self.max_volume})"
