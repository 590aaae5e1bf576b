"""Keyboard state for the engine: raw terminal input with a scripted fallback."""

from __future__ import annotations

import atexit
import os
import sys
from enum import IntEnum
from typing import Iterator

try:
    import fcntl
    import termios
except ImportError:  # not a POSIX terminal platform
    fcntl = None  # type: ignore[assignment]
    termios = None  # type: ignore[assignment]

HOLD_DURATION_FRAMES = 3
_SCRIPT_LOOP_FRAMES = 480
_SCRIPT_PHASE_FRAMES = 120
_SCRIPT_SHOOT_EVERY = 10
_MAX_READS_PER_UPDATE = 32


class Key(IntEnum):
    MOVE_FORWARD = 0
    MOVE_BACKWARD = 1
    MOVE_LEFT = 2
    MOVE_RIGHT = 3
    SHOOT = 4


_CHARACTER_KEYS = {
    "w": Key.MOVE_FORWARD,
    "s": Key.MOVE_BACKWARD,
    "a": Key.MOVE_LEFT,
    "d": Key.MOVE_RIGHT,
    " ": Key.SHOOT,
}

_SCRIPTED_MOVES = (Key.MOVE_RIGHT, Key.MOVE_FORWARD, Key.MOVE_LEFT, Key.MOVE_BACKWARD)


class _RawTerminal:
    """Puts standard input into non-canonical, non-blocking mode and back."""

    def __init__(self) -> None:
        self.active = False
        self._fd = -1
        self._original_flags = 0
        self._original_attrs: list | None = None
        self._exit_hook_registered = False

    def enable(self) -> bool:
        if self.active:
            return True
        if termios is None or fcntl is None:
            return False
        try:
            fd = sys.stdin.fileno()
        except (AttributeError, OSError, ValueError):
            return False
        if not os.isatty(fd):
            return False

        try:
            original = termios.tcgetattr(fd)
        except termios.error:
            return False

        raw = list(original)
        raw[3] &= ~(termios.ICANON | termios.ECHO)
        control_chars = list(raw[6])
        control_chars[termios.VMIN] = 0
        control_chars[termios.VTIME] = 0
        raw[6] = control_chars
        try:
            termios.tcsetattr(fd, termios.TCSANOW, raw)
        except termios.error:
            return False

        try:
            flags = fcntl.fcntl(fd, fcntl.F_GETFL)
            fcntl.fcntl(fd, fcntl.F_SETFL, flags | os.O_NONBLOCK)
        except OSError:
            termios.tcsetattr(fd, termios.TCSANOW, original)
            return False

        self._fd = fd
        self._original_attrs = original
        self._original_flags = flags
        self.active = True
        if not self._exit_hook_registered:
            atexit.register(self.restore)
            self._exit_hook_registered = True
        return True

    def restore(self) -> None:
        if not self.active:
            return
        try:
            termios.tcsetattr(self._fd, termios.TCSANOW, self._original_attrs)
            fcntl.fcntl(self._fd, fcntl.F_SETFL, self._original_flags)
        except (OSError, termios.error):
            pass
        self.active = False

    def read_chars(self, limit: int) -> Iterator[str]:
        for _ in range(limit):
            try:
                data = os.read(self._fd, 1)
            except (BlockingIOError, OSError):
                return
            if not data:
                return
            yield data.decode("latin-1")


_terminal = _RawTerminal()


class InputManager:
    """Tracks which logical keys are pressed in the current frame.

    A pressed key stays down for a few frames so single terminal key presses
    register as short holds. Without an interactive terminal, a deterministic
    scripted pattern of movement and shooting drives the input.
    """

    def __init__(self, terminal_input: bool = True) -> None:
        self._use_terminal = terminal_input
        self._keys = [False] * len(Key)
        self._hold_frames = [0] * len(Key)
        self._quit_requested = False
        self._terminal_enabled = False
        self._scripted_frame = 0

    @property
    def quit_requested(self) -> bool:
        return self._quit_requested

    @property
    def terminal_enabled(self) -> bool:
        return self._terminal_enabled

    def initialize(self) -> None:
        self._keys = [False] * len(Key)
        self._hold_frames = [0] * len(Key)
        self._quit_requested = False
        self._scripted_frame = 0
        self._terminal_enabled = self._use_terminal and _terminal.enable()

    def update(self) -> None:
        """Advance one frame: age held keys, then gather new input."""
        self._keys = [hold > 0 for hold in self._hold_frames]
        self._hold_frames = [max(hold - 1, 0) for hold in self._hold_frames]

        if not self._terminal_enabled:
            self._scripted_update()
            return

        for char in _terminal.read_chars(_MAX_READS_PER_UPDATE):
            self.map_character(char)

    def _scripted_update(self) -> None:
        frame = self._scripted_frame
        loop = frame % _SCRIPT_LOOP_FRAMES
        self.set_key_state(Key.SHOOT, frame % _SCRIPT_SHOOT_EVERY == 0)
        self.set_key_state(_SCRIPTED_MOVES[loop // _SCRIPT_PHASE_FRAMES], True)
        self._scripted_frame += 1

    def is_key_pressed(self, key: Key) -> bool:
        return self._keys[key]

    def set_key_state(self, key: Key, pressed: bool) -> None:
        self._keys[key] = pressed
        self._hold_frames[key] = HOLD_DURATION_FRAMES if pressed else 0

    def map_character(self, char: str) -> None:
        """Apply one typed character: WASD moves, space shoots, Q quits."""
        lowered = char.lower()
        if lowered == "q":
            self._quit_requested = True
            return
        key = _CHARACTER_KEYS.get(lowered)
        if key is not None:
            self.set_key_state(key, True)

    def shutdown(self) -> None:
        self._keys = [False] * len(Key)
        self._hold_frames = [0] * len(Key)
        self._quit_requested = False
        if self._terminal_enabled:
            _terminal.restore()
        self._terminal_enabled = False