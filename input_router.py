# -*- coding: utf-8 -*-
########################
# input_router.py
########################
# Purpose:
# - Single keyboard listener for gameplay lane input.
# - Translates key presses into gameplay_models.InputEvent and emits a Qt signal.
#
# Design notes:
# - This must be the only lane input source. No duplicate key mapping elsewhere.
# - Debounce rules:
#   - Ignore auto repeat.
#   - Track pressed keys to avoid duplicate presses.
# - Time source is injected as a callable returning the raw playback clock in seconds.
#   It is sampled at the press, so the event keeps the press time even if judged later.
# - A key maps to a tuple of lanes. Reduced-input layouts bind one key to several lanes.
#
########################
# Interfaces:
# Public functions:
# - build_default_key_to_lanes_map() -> dict[int, tuple[int, ...]]
# - build_reduced_key_to_lanes_map() -> dict[int, tuple[int, ...]]  (four lane charts)
# - build_two_lane_key_to_lanes_map() -> dict[int, tuple[int, ...]]  (charts from adjust_for_mobile)
#
# Public classes:
# - class InputRouter(PyQt6.QtCore.QObject)
#   - Signals:
#     - inputEvent(gameplay_models.InputEvent)
#   - Methods:
#     - handle_key_press(event) -> bool
#     - handle_key_release(event) -> bool
#     - clear_pressed_keys() -> None
#     - reset_stats() -> None
#
# Inputs:
# - Key events from the Qt event loop (anything exposing key() and isAutoRepeat()).
#
# Outputs:
# - Lane input events consumed by SessionDriver / GameSession.
#
########################

from __future__ import annotations

from typing import Callable, Dict, Optional, Set, Tuple

from PyQt6.QtCore import QObject, Qt, pyqtSignal

import gameplay_models


def build_default_key_to_lanes_map() -> Dict[int, Tuple[int, ...]]:
    """
    Default lane mapping for a four lane chart.

    Lane indexes:
      0 = D
      1 = F
      2 = J
      3 = K
    """
    return {
        int(Qt.Key.Key_D): (0,),
        int(Qt.Key.Key_F): (1,),
        int(Qt.Key.Key_J): (2,),
        int(Qt.Key.Key_K): (3,),
    }


def build_reduced_key_to_lanes_map() -> Dict[int, Tuple[int, ...]]:
    """Two keys, each covering half of the lanes of a four lane chart."""
    return {
        int(Qt.Key.Key_F): (0, 1),
        int(Qt.Key.Key_J): (2, 3),
    }


def build_two_lane_key_to_lanes_map() -> Dict[int, Tuple[int, ...]]:
    """Two keys for two lane (mobile) charts: F = lane 0, J = lane 1."""
    return {
        int(Qt.Key.Key_F): (0,),
        int(Qt.Key.Key_J): (1,),
    }


class InputRouter(QObject):
    """
    Central keyboard router for gameplay lane input.

    This object never judges timing. Its only job is to:
      - map keys to lane sets
      - attach the raw clock sampled at the press
      - emit a gameplay_models.InputEvent for each valid press
    """

    inputEvent = pyqtSignal(object)

    def __init__(
        self,
        raw_clock_provider: Callable[[], float],
        parent: Optional[QObject] = None,
        key_to_lanes_map: Optional[Dict[int, Tuple[int, ...]]] = None,
    ) -> None:
        super().__init__(parent)

        self._raw_clock_provider: Callable[[], float] = raw_clock_provider
        self._key_to_lanes: Dict[int, Tuple[int, ...]] = (
            {int(key): tuple(lanes) for key, lanes in key_to_lanes_map.items()}
            if key_to_lanes_map is not None
            else build_default_key_to_lanes_map()
        )

        self._pressed_keys: Set[int] = set()

        self._total_presses: int = 0
        self._ignored_presses: int = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def handle_key_press(self, event) -> bool:
        """
        Handle a key press.

        Returns True if this router consumed the event, False otherwise.
        """
        # Sample first so routing work does not shift the press time.
        raw_clock_seconds = float(self._raw_clock_provider())
        key_code = int(event.key())

        if event.isAutoRepeat():
            if key_code in self._key_to_lanes:
                self._ignored_presses += 1
                return True
            return False

        if key_code in self._pressed_keys:
            if key_code in self._key_to_lanes:
                self._ignored_presses += 1
                return True
            return False

        lanes = self._key_to_lanes.get(key_code)
        if lanes is None:
            return False

        self._pressed_keys.add(key_code)
        self._total_presses += 1
        self.inputEvent.emit(gameplay_models.InputEvent(time_seconds=raw_clock_seconds, lanes=lanes))
        return True

    def handle_key_release(self, event) -> bool:
        """
        Handle a key release.

        Returns True if this router consumed the event, False otherwise.
        """
        key_code = int(event.key())

        if event.isAutoRepeat():
            return key_code in self._key_to_lanes

        self._pressed_keys.discard(key_code)
        return key_code in self._key_to_lanes

    def clear_pressed_keys(self) -> None:
        """Clear pressed state for all keys, e.g. on focus loss."""
        self._pressed_keys.clear()

    def reset_stats(self) -> None:
        self._total_presses = 0
        self._ignored_presses = 0

    @property
    def key_to_lanes_map(self) -> Dict[int, Tuple[int, ...]]:
        return dict(self._key_to_lanes)

    @property
    def total_presses(self) -> int:
        return self._total_presses

    @property
    def ignored_presses(self) -> int:
        return self._ignored_presses
