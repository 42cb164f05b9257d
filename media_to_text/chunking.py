import math
from dataclasses import dataclass

DEFAULT_CHUNK_SECONDS = 600.0  # 10 minutes per chunk


@dataclass(frozen=True, slots=True)
class Segment:
    index: int
    start_s: float
    length_s: float

    @property
    def end_s(self) -> float:
        return self.start_s + self.length_s


def plan_chunks(total_duration_s: float, chunk_length_s: float = DEFAULT_CHUNK_SECONDS) -> list[Segment]:
    """
    Split a duration into contiguous, ordered time ranges.

    Args:
        total_duration_s: Total audio duration in seconds.
        chunk_length_s: Nominal length of each chunk in seconds.

    Returns:
        One segment per chunk, covering [0, total_duration_s). Only the last
        segment may be shorter than `chunk_length_s`. A non-positive duration
        gives an empty plan, meaning the file should be transcribed whole.
    """
    if chunk_length_s <= 0:
        raise ValueError("chunk_length_s must be > 0")
    if total_duration_s <= 0:
        return []

    count = math.ceil(total_duration_s / chunk_length_s)
    segments: list[Segment] = []
    for i in range(count):
        start = i * chunk_length_s
        length = min(chunk_length_s, total_duration_s - start)
        if length <= 0:
            # float rounding can leave an empty tail
            break
        segments.append(Segment(index=i, start_s=start, length_s=length))
    return segments
