from __future__ import annotations

import math
from typing import Sequence

from route_core.config import QualityOptions
from route_core.model.track_point import TrackPoint


def find_gradient_problems(
    points: Sequence[TrackPoint], options: QualityOptions | None = None
) -> list[int]:
    """Indices where the gradient changes by more than the allowed step (percent)."""
    options = options or QualityOptions()
    return [
        p.index
        for p in points
        if p.gradient_change is not None and p.gradient_change > options.max_gradient_change
    ]


def find_bend_problems(
    points: Sequence[TrackPoint], options: QualityOptions | None = None
) -> list[int]:
    """Indices where the bearing turns more sharply than the allowed angle."""
    options = options or QualityOptions()
    limit = math.radians(options.max_direction_change_degrees)
    return [
        p.index
        for p in points
        if p.direction_change is not None and abs(p.direction_change) > limit
    ]
