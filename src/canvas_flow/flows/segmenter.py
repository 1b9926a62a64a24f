"""Split a requested video duration into model-sized segments."""

import math
from dataclasses import dataclass

from canvas_flow.flows.catalog import max_duration_for


@dataclass(frozen=True)
class Segment:
    index: int
    time_start: float
    time_end: float

    @property
    def duration(self) -> float:
        return self.time_end - self.time_start


def segment_count(total_duration: float, max_duration: float) -> int:
    if total_duration <= 0:
        raise ValueError(f"total duration must be positive, got {total_duration}")
    if max_duration <= 0:
        raise ValueError(f"max clip duration must be positive, got {max_duration}")
    return math.ceil(total_duration / max_duration)


def segment_windows(total_duration: float, max_duration: float) -> list[Segment]:
    """Windows of ``max_duration`` seconds; only the last one may be shorter."""
    return [
        Segment(
            index=i,
            time_start=i * max_duration,
            time_end=min((i + 1) * max_duration, total_duration),
        )
        for i in range(segment_count(total_duration, max_duration))
    ]


def segments_for_model(total_duration: float, model: str | None) -> list[Segment]:
    return segment_windows(total_duration, max_duration_for(model))
