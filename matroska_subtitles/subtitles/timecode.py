from dataclasses import dataclass
from typing import Optional

NS_PER_MS = 1_000_000  # TimecodeScale is expressed in nanoseconds per tick


@dataclass
class TimecodeContext:
    """Segment timecode scale and the base timecode of the current cluster."""

    scale: float = 1  # Milliseconds per tick
    cluster_base: Optional[int] = None

    def set_scale(self, raw_value: int) -> None:
        self.scale = raw_value / NS_PER_MS

    def set_cluster(self, raw_value: int) -> None:
        self.cluster_base = raw_value

    def absolute(self, relative: int) -> float:
        """Absolute time in ms of a block timecode relative to the current cluster."""
        return (relative + (self.cluster_base or 0)) * self.scale

    def span(self, ticks: Optional[int]) -> float:
        """Length in ms of a tick count; NaN when the count is missing."""
        if ticks is None:
            return float("nan")
        return ticks * self.scale

    def carry_over(self) -> "TimecodeContext":
        """Copy for a stream attached mid-file: the scale survives, the cluster base does not."""
        return TimecodeContext(scale=self.scale)
