"""Reversible edit records built from explicit range replacements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from route_core.model.track_point import TrackPoint
from route_core.model.track_sequence import (
    PointLike,
    RangeEdit,
    apply_range_edit,
    positions,
)


class EditCommand(ABC):
    """Base class for reversible track edits."""

    @abstractmethod
    def apply(self) -> list[TrackPoint]:
        """Apply the command and return the updated track."""

    @abstractmethod
    def revert(self) -> list[TrackPoint]:
        """Revert the command and return the prior track."""


class ReplaceRangeCommand(EditCommand):
    """Replace one index range of a track, remembering what it replaced.

    Only positions are stored; both directions rebuild derived fields.
    """

    def __init__(self, before: Sequence[PointLike], edit: RangeEdit) -> None:
        self._before = tuple(positions(before))
        self._edit = edit
        after, inverse = apply_range_edit(self._before, edit)
        self._after = tuple(p.xyz for p in after)
        self._inverse = inverse

    @property
    def edit(self) -> RangeEdit:
        return self._edit

    @property
    def inverse(self) -> RangeEdit:
        return self._inverse

    def apply(self) -> list[TrackPoint]:
        updated, _inverse = apply_range_edit(self._before, self._edit)
        return updated

    def revert(self) -> list[TrackPoint]:
        restored, _edit = apply_range_edit(self._after, self._inverse)
        return restored
