"""Time-step bracketing on a strictly increasing time axis."""
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class TemporalBracket:
    """Time step at or before the query, and the gaps to it and the next step.

    When ``has_next`` is False only ``step`` is meaningful and both gaps are 0.
    """
    step: int
    has_next: bool
    time_since: float = 0.0
    time_until: float = 0.0


def resolve_time(query_time: float, time_axis) -> TemporalBracket:
    """Bracket ``query_time`` between two consecutive time steps.

    - step: greatest index whose time does not exceed ``query_time``
      (0 when the query precedes the axis)
    - has_next: False on a single-step axis or once ``query_time`` reaches
      the last step
    - time_since is clamped at 0, so a query before the first step takes the
      first step's value
    """
    t = np.asarray(time_axis, dtype=float)
    if t.ndim != 1 or t.size == 0:
        raise ValueError('time_axis must be a non-empty 1-D array')

    step = max(int(np.searchsorted(t, query_time, side='right')) - 1, 0)
    if step >= t.size - 1:
        return TemporalBracket(step=step, has_next=False)

    time_since = max(float(query_time - t[step]), 0.0)
    time_until = float(t[step + 1] - query_time)
    return TemporalBracket(step=step, has_next=True, time_since=time_since, time_until=time_until)
