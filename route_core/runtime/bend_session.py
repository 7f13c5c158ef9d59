from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum
from typing import Sequence

from PyQt5 import QtCore

from route_core.config import BendOptions, SmoothingMode
from route_core.geometry.primitives import Point3D
from route_core.geometry.spatial_index import SpatialIndex, build_track_index
from route_core.model.edit_commands import ReplaceRangeCommand
from route_core.model.track_point import TrackPoint
from route_core.model.track_sequence import PointLike, rebuild_derived_fields
from route_core.services.curve_former import (
    BendPreview,
    BendSpec,
    bend_edit,
    center_from_drag,
    preview_bend,
)

logger = logging.getLogger(__name__)


class BendState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    PREVIEWED = "previewed"
    APPLIED = "applied"


class BendSession(QtCore.QObject):
    """Interactive state for the bend tool over one track.

    The preview is only ever exposed while it matches the current circle and
    parameters; any change either recomputes it (when previewed) or drops it.
    """

    state_changed = QtCore.pyqtSignal(str)
    preview_changed = QtCore.pyqtSignal()
    track_replaced = QtCore.pyqtSignal()

    def __init__(
        self,
        options: BendOptions | None = None,
        parent: QtCore.QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._defaults = options or BendOptions()
        self._options = self._defaults
        self._points: list[TrackPoint] = []
        self._index: SpatialIndex | None = None
        self._window: tuple[int, int] | None = None
        self._reference_index = 0
        self._drag = (0.0, 0.0)
        self._preview: BendPreview | None = None
        self._state = BendState.IDLE

    @property
    def state(self) -> BendState:
        return self._state

    @property
    def options(self) -> BendOptions:
        return self._options

    @property
    def points(self) -> list[TrackPoint]:
        return list(self._points)

    @property
    def preview(self) -> BendPreview | None:
        return self._preview

    @property
    def center(self) -> Point3D | None:
        if not self._points:
            return None
        return center_from_drag(self._points[self._reference_index], self._drag)

    def _set_state(self, state: BendState) -> None:
        if state is self._state:
            return
        logger.debug("Bend session %s -> %s", self._state.value, state.value)
        self._state = state
        self.state_changed.emit(state.value)

    def _drop_preview(self) -> None:
        if self._preview is None:
            return
        self._preview = None
        self.preview_changed.emit()

    def set_track(
        self,
        points: Sequence[PointLike],
        *,
        reference_index: int = 0,
        window: tuple[int, int] | None = None,
    ) -> None:
        self._points = rebuild_derived_fields(points)
        self._index = build_track_index(self._points)
        self._reference_index = min(max(reference_index, 0), max(len(self._points) - 1, 0))
        self._window = window
        self._refresh()

    def grab(self) -> None:
        self._drop_preview()
        self._set_state(BendState.DRAGGING)

    def drag_to(self, dx: float, dy: float) -> None:
        if self._state is not BendState.DRAGGING:
            return
        self._drag = (float(dx), float(dy))

    def release(self) -> None:
        if self._state is not BendState.DRAGGING:
            return
        self._set_state(BendState.IDLE)
        self.run_preview()

    def run_preview(self) -> BendPreview | None:
        center = self.center
        if center is None:
            return None
        spec = BendSpec.from_options(center, self._options)
        self._preview = preview_bend(
            self._points, spec, index=self._index, window=self._window
        )
        self._set_state(BendState.PREVIEWED)
        self.preview_changed.emit()
        return self._preview

    def _refresh(self) -> None:
        if self._state is BendState.PREVIEWED:
            self.run_preview()
        else:
            self._drop_preview()

    def _update_options(self, **changes: object) -> None:
        self._options = replace(self._options, **changes)
        self._refresh()

    def set_push_radius(self, radius: float) -> None:
        self._update_options(push_radius=float(radius))

    def set_pull_disc_width(self, width: float) -> None:
        self._update_options(pull_disc_width=float(width))

    def set_spacing(self, spacing: float) -> None:
        self._update_options(spacing=float(spacing))

    def set_use_pull_radius(self, enabled: bool) -> None:
        self._update_options(use_pull_radius=bool(enabled))

    def set_smoothing_mode(self, mode: SmoothingMode) -> None:
        self._update_options(smoothing_mode=mode)

    def apply(self) -> tuple[list[TrackPoint], ReplaceRangeCommand] | None:
        """Install the previewed bend and return the new track with its undo entry."""
        if self._state is not BendState.PREVIEWED or self._preview is None:
            return None
        edit = bend_edit(self._preview)
        if edit is None:
            logger.warning("Bend cannot be applied: %s", self._preview.problem)
            return None

        command = ReplaceRangeCommand(self._points, edit)
        updated = command.apply()
        self._set_state(BendState.APPLIED)
        self._points = updated
        self._index = build_track_index(updated)
        self._reference_index = min(self._reference_index, len(updated) - 1)
        self._window = None
        self._drag = (0.0, 0.0)
        self._drop_preview()
        self.track_replaced.emit()
        self._set_state(BendState.IDLE)
        return updated, command

    def reset(self) -> None:
        self._options = self._defaults
        self._drag = (0.0, 0.0)
        self._drop_preview()
        self._set_state(BendState.IDLE)
