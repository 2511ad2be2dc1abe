"""Per-frame input snapshot and the tracker that accumulates it from events."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto

logger = logging.getLogger(__name__)


class MouseButton(Enum):
    """
    Enum for different mouse buttons.

    LEFT is the primary button, MIDDLE the secondary and RIGHT the tertiary.
    """
    LEFT = auto()
    MIDDLE = auto()
    RIGHT = auto()


@dataclass(frozen=True)
class InputState:
    """
    Input of one frame.

    :ivar primary: Primary pointer button held (rotate / orbit)
    :ivar secondary: Secondary pointer button held (pan / translate)
    :ivar tertiary: Tertiary pointer button held (zoom / scale)
    :ivar modifier: Modifier key held (turns primary into pan / translate)
    :ivar dx: Pointer x movement since the previous frame
    :ivar dy: Pointer y movement since the previous frame
    """
    primary: bool = False
    secondary: bool = False
    tertiary: bool = False
    modifier: bool = False
    dx: float = 0.0
    dy: float = 0.0

    @classmethod
    def idle(cls) -> InputState:
        return cls()

    @property
    def any_button(self) -> bool:
        return self.primary or self.secondary or self.tertiary


class InputTracker:
    """
    Collects pointer and key events between two frames.

    Button and key states persist across frames; pointer deltas are reset by
    every :meth:`snapshot`.
    """

    def __init__(self, modifier_key: str = " ") -> None:
        self.modifier_key = modifier_key
        self._buttons: set[MouseButton] = set()
        self._keys: set[str] = set()
        self._last_pos: tuple[float, float] | None = None
        self._dx = 0.0
        self._dy = 0.0

    def press(self, button: MouseButton, x: float | None = None, y: float | None = None) -> None:
        self._buttons.add(button)
        if x is not None and y is not None:
            self._last_pos = (x, y)

    def release(self, button: MouseButton) -> None:
        self._buttons.discard(button)

    def key_down(self, key: str) -> None:
        self._keys.add(key)

    def key_up(self, key: str) -> None:
        self._keys.discard(key)

    def is_key_down(self, key: str) -> bool:
        return key in self._keys

    def move(self, x: float, y: float) -> None:
        """Record the pointer position; the first move only sets the reference point."""
        if self._last_pos is not None:
            lx, ly = self._last_pos
            self._dx += x - lx
            self._dy += y - ly
        self._last_pos = (x, y)

    def snapshot(self) -> InputState:
        """Return this frame's input and reset the accumulated deltas."""
        state = InputState(
            primary=MouseButton.LEFT in self._buttons,
            secondary=MouseButton.MIDDLE in self._buttons,
            tertiary=MouseButton.RIGHT in self._buttons,
            modifier=self.modifier_key in self._keys,
            dx=self._dx,
            dy=self._dy,
        )
        self._dx = 0.0
        self._dy = 0.0
        return state
