"""Interaction mode - decides whether frame input drives the camera or the selected node."""
from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Callable

logger = logging.getLogger(__name__)


class InteractionMode(Enum):
    """Target of the pointer input."""
    CAMERA = auto()
    SCENE_NODE = auto()

    @classmethod
    def from_name(cls, name: str) -> InteractionMode:
        """Parse 'camera' / 'scene_node' (also 'Scene Node')."""
        key = str(name).strip().upper().replace(" ", "_")
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown interaction mode: {name}") from None


ModeChangedCallback = Callable[[InteractionMode, InteractionMode], None]


def _fire(callbacks, *args, what: str) -> None:
    for callback in callbacks:
        try:
            callback(*args)
        except Exception:
            logger.exception("Error in %s callback", what)


class InteractionController:
    """
    Holds the current interaction mode and a stack of previous ones.

    A mode change runs the exit callbacks of the old mode, then the enter
    callbacks of the new one, then the mode-changed callbacks.

    Usage:
        controller = InteractionController()
        controller.add_mode_changed_callback(on_mode_changed)
        controller.push_mode(InteractionMode.SCENE_NODE)   # while a node is dragged
        controller.pop_mode()                              # back to the camera
    """

    def __init__(self, initial_mode: InteractionMode = InteractionMode.CAMERA):
        self._initial_mode = initial_mode
        self._mode = initial_mode
        self._stack: list[InteractionMode] = []
        self._changed: list[ModeChangedCallback] = []
        self._entered: dict[InteractionMode, list[Callable[[], None]]] = {m: [] for m in InteractionMode}
        self._exited: dict[InteractionMode, list[Callable[[], None]]] = {m: [] for m in InteractionMode}

    @property
    def current_mode(self) -> InteractionMode:
        return self._mode

    @property
    def previous_mode(self) -> InteractionMode | None:
        """Mode restored by the next :meth:`pop_mode`."""
        return self._stack[-1] if self._stack else None

    @property
    def mode_stack_depth(self) -> int:
        return len(self._stack)

    def set_mode(self, mode: InteractionMode) -> None:
        """
        Switch to ``mode`` without touching the history; switching to the
        current mode does nothing.

        :param mode: New interaction mode
        """
        old = self._mode
        if mode == old:
            return

        _fire(self._exited[old], what="mode exit")
        self._mode = mode
        logger.info("Interaction mode: %s -> %s", old.name, mode.name)

        _fire(self._entered[mode], what="mode enter")
        _fire(self._changed, old, mode, what="mode changed")

    def push_mode(self, mode: InteractionMode) -> None:
        """Save the current mode, even when it equals ``mode``, then switch."""
        self._stack.append(self._mode)
        self.set_mode(mode)
        logger.debug("Mode pushed: %s (stack depth: %d)", mode.name, self.mode_stack_depth)

    def pop_mode(self) -> bool:
        """
        Restore the mode saved by the last push.

        :return: False when there was nothing to restore
        """
        if not self._stack:
            logger.warning("Cannot pop mode: mode stack is empty")
            return False
        restored = self._stack.pop()
        self.set_mode(restored)
        logger.debug("Mode popped: %s (stack depth: %d)", restored.name, self.mode_stack_depth)
        return True

    def add_mode_changed_callback(self, callback: ModeChangedCallback) -> None:
        """callback(old_mode, new_mode) -> None"""
        self._changed.append(callback)

    def add_mode_enter_callback(self, mode: InteractionMode, callback: Callable[[], None]) -> None:
        self._entered[mode].append(callback)

    def add_mode_exit_callback(self, mode: InteractionMode, callback: Callable[[], None]) -> None:
        self._exited[mode].append(callback)

    def reset(self) -> None:
        """Drop the history and go back to the initial mode."""
        self._stack.clear()
        self.set_mode(self._initial_mode)
