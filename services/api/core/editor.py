# services/api/core/editor.py
"""
Headless controller for the schematic marker editor.

The UI layer forwards pointer events here; all state lives in the
owned MarkerCollection until the family form is saved. The image box
is read through an explicit `measure` callable on every event, never
looked up globally.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from models.marker import HANDLES, Marker, MarkerCollection, Rect, clamp_size, pointer_to_percent
from models.variable import TechnicalVariable, VariableRegistry

logger = logging.getLogger(__name__)

GESTURE_DRAG = "drag"
GESTURE_RESIZE = "resize"

MeasureFn = Callable[[], Optional[Rect]]


class MarkerEditor:
    def __init__(
        self,
        collection: MarkerCollection,
        registry: VariableRegistry,
        measure: MeasureFn,
    ):
        self.collection = collection
        self.registry = registry
        self._measure = measure

        self.add_mode = False
        self.editing_id: Optional[str] = None

        self.gesture: Optional[str] = None
        self._gesture_marker_id: Optional[str] = None
        self._handle: Optional[str] = None
        self._moved = False
        self._start_client = (0.0, 0.0)
        self._start_size = 0.0

    # --------------------
    # State
    # --------------------
    @property
    def busy(self) -> bool:
        return self.gesture is not None

    @property
    def editing(self) -> Optional[Marker]:
        if self.editing_id is None:
            return None
        return self.collection.get(self.editing_id)

    def toggle_add_mode(self) -> bool:
        if self.busy:
            return False
        self.add_mode = not self.add_mode
        return True

    # --------------------
    # Add mode
    # --------------------
    def click_image(self, client_x: float, client_y: float) -> Optional[Marker]:
        """Place a new marker where the image was clicked (add mode only)."""
        if not self.add_mode or self.busy:
            return None
        pos = pointer_to_percent(client_x, client_y, self._measure())
        if pos is None:
            return None
        marker = self.collection.add(pos[0], pos[1], self.registry.default_key())
        self.add_mode = False
        self.editing_id = marker.id
        logger.debug(f"Marker {marker.number} placed at ({pos[0]:.1f}, {pos[1]:.1f})")
        return marker

    # --------------------
    # Drag to move
    # --------------------
    def press_marker(self, marker_id: str, client_x: float, client_y: float) -> bool:
        if self.busy or self.add_mode or self.collection.get(marker_id) is None:
            return False
        self.gesture = GESTURE_DRAG
        self._gesture_marker_id = marker_id
        self._moved = False
        self._start_client = (client_x, client_y)
        return True

    # --------------------
    # Resize handles (only on the marker being edited)
    # --------------------
    def press_handle(self, marker_id: str, handle: str, client_x: float, client_y: float) -> bool:
        if self.busy or marker_id != self.editing_id or handle not in HANDLES:
            return False
        marker = self.collection.get(marker_id)
        if marker is None:
            return False
        attr, _ = HANDLES[handle]
        self.gesture = GESTURE_RESIZE
        self._gesture_marker_id = marker_id
        self._handle = handle
        self._moved = False
        self._start_client = (client_x, client_y)
        self._start_size = getattr(marker, attr)
        return True

    def pointer_move(self, client_x: float, client_y: float) -> bool:
        """Apply one movement event. Returns True if the marker changed."""
        if self.gesture is None or self._gesture_marker_id is None:
            return False
        rect = self._measure()
        if rect is None or rect.is_degenerate:
            return False

        if (client_x, client_y) != self._start_client:
            self._moved = True

        if self.gesture == GESTURE_DRAG:
            if not self._moved:
                return False
            pos = pointer_to_percent(client_x, client_y, rect)
            if pos is None:
                return False
            self.collection.move(self._gesture_marker_id, pos[0], pos[1])
            return True

        attr, sign = HANDLES[self._handle]
        if attr == "width":
            delta = (client_x - self._start_client[0]) / rect.width * 100.0
            self.collection.set_size(self._gesture_marker_id, width=clamp_size(self._start_size + sign * delta))
        else:
            delta = (client_y - self._start_client[1]) / rect.height * 100.0
            self.collection.set_size(self._gesture_marker_id, height=clamp_size(self._start_size + sign * delta))
        return True

    def release(self) -> Optional[str]:
        """
        End the current gesture.

        Returns "click" when a marker was pressed and released without
        moving (it is now being edited), otherwise the gesture name.
        """
        gesture, marker_id, moved = self.gesture, self._gesture_marker_id, self._moved
        self.gesture = None
        self._gesture_marker_id = None
        self._handle = None
        self._moved = False

        if gesture == GESTURE_DRAG and not moved:
            self.editing_id = marker_id
            return "click"
        return gesture

    # --------------------
    # Edit-in-place form
    # --------------------
    def open_edit(self, marker_id: str) -> bool:
        if self.busy or self.collection.get(marker_id) is None:
            return False
        self.editing_id = marker_id
        return True

    def set_label(self, label: str) -> None:
        if self.editing_id:
            self.collection.update(self.editing_id, label=label)

    def set_variable(self, key: str) -> None:
        if self.editing_id:
            self.collection.update(self.editing_id, variable_key=key)

    def set_render_kind(self, kind: str) -> None:
        if self.editing_id:
            self.collection.update(self.editing_id, render_kind=kind)

    def variable_choices(self, search: str = "") -> List[TechnicalVariable]:
        return self.registry.search(search)

    def form_state(self) -> Optional[Dict[str, Any]]:
        marker = self.editing
        if marker is None:
            return None
        return {
            "numero": marker.number,
            "label": marker.label,
            "variavel": marker.variable_key,
            # deactivated / unknown keys show as the raw key
            "variavel_nome": self.registry.display_name(marker.variable_key),
            "tipo": marker.render_kind,
            "width": marker.width,
            "height": marker.height,
        }

    def confirm_edit(self) -> None:
        self.editing_id = None

    def remove_editing(self) -> Optional[Marker]:
        if self.editing_id is None or self.busy:
            return None
        removed = self.collection.remove(self.editing_id)
        self.editing_id = None
        return removed
