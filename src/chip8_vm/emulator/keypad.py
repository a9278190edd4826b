"""
Keypad Controller for the CHIP-8 VM
===================================

Sixteen logical keys, 0x0-0xF, each pressed or released. The host
replaces the whole key state once per tick.

The keypad also carries the wait-for-key state used by Fx0A:

    IDLE --Fx0A--> AWAITING_KEY(x) --any key pressed--> IDLE (Vx := key)

While a wait is pending the engine executes no instructions. When more
than one key is down at resolution time the lowest key index wins.

Host key layout (DEFAULT_KEY_MAP):

    1 2 3 4        0 1 2 3
    Q W E R   ->   4 5 6 7
    A S D F        8 9 A B
    Z X C V        C D E F
"""

from enum import Enum, auto
from typing import Dict, List, Optional, Sequence, Tuple

NUM_KEYS = 16

# Host key name -> logical key
DEFAULT_KEY_MAP: Dict[str, int] = {
    "1": 0x0, "2": 0x1, "3": 0x2, "4": 0x3,
    "Q": 0x4, "W": 0x5, "E": 0x6, "R": 0x7,
    "A": 0x8, "S": 0x9, "D": 0xA, "F": 0xB,
    "Z": 0xC, "X": 0xD, "C": 0xE, "V": 0xF,
}


class KeypadState(Enum):
    """Wait-for-key state."""
    IDLE = auto()
    AWAITING_KEY = auto()


class Keypad:
    """
    16-key keypad with the Fx0A wait state machine.

    Example:
        >>> kp = Keypad()
        >>> kp.begin_wait(3)
        >>> kp.resolve_wait() is None
        True
        >>> kp.press(0xA)
        >>> kp.resolve_wait()
        (3, 10)
        >>> kp.state
        <KeypadState.IDLE: 1>
    """

    def __init__(self):
        self._keys = [False] * NUM_KEYS
        self._state = KeypadState.IDLE
        self._register: Optional[int] = None

    @staticmethod
    def _check_key(key: int) -> None:
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"Key must be 0x0-0xF, got {key}")

    # =========================================================================
    # Key State
    # =========================================================================

    def update(self, states: Sequence[bool]) -> None:
        """
        Replace all key states at once.

        Args:
            states: Up to 16 booleans indexed by logical key; missing
                entries are treated as released
        """
        if len(states) > NUM_KEYS:
            raise ValueError(f"Expected at most {NUM_KEYS} key states, got {len(states)}")
        self._keys = [bool(s) for s in states] + [False] * (NUM_KEYS - len(states))

    def press(self, key: int) -> None:
        self._check_key(key)
        self._keys[key] = True

    def release(self, key: int) -> None:
        self._check_key(key)
        self._keys[key] = False

    def release_all(self) -> None:
        self._keys = [False] * NUM_KEYS

    def is_pressed(self, key: int) -> bool:
        self._check_key(key)
        return self._keys[key]

    @property
    def pressed_keys(self) -> List[int]:
        return [k for k, down in enumerate(self._keys) if down]

    @property
    def states(self) -> Tuple[bool, ...]:
        return tuple(self._keys)

    # =========================================================================
    # Wait-for-key State Machine
    # =========================================================================

    @property
    def state(self) -> KeypadState:
        return self._state

    @property
    def is_awaiting(self) -> bool:
        return self._state is KeypadState.AWAITING_KEY

    @property
    def awaiting_register(self) -> Optional[int]:
        """Destination register of the pending wait, or None when idle."""
        return self._register

    def begin_wait(self, register: int) -> None:
        """Enter AWAITING_KEY; the key will be stored in register."""
        if not 0 <= register < 16:
            raise ValueError(f"Register must be 0x0-0xF, got {register}")
        self._state = KeypadState.AWAITING_KEY
        self._register = register

    def resolve_wait(self) -> Optional[Tuple[int, int]]:
        """
        Try to complete a pending wait.

        Returns:
            (register, key) for the lowest-indexed pressed key, returning
            the keypad to IDLE; None if no wait is pending or no key is down
        """
        if self._state is not KeypadState.AWAITING_KEY:
            return None
        for key, down in enumerate(self._keys):
            if down:
                register = self._register
                self._state = KeypadState.IDLE
                self._register = None
                return register, key
        return None

    def reset(self) -> None:
        self._keys = [False] * NUM_KEYS
        self._state = KeypadState.IDLE
        self._register = None

    # =========================================================================
    # Snapshot Support
    # =========================================================================

    def get_snapshot_data(self) -> List[int]:
        """Layout: [awaiting (0/1), register]"""
        awaiting = self._state is KeypadState.AWAITING_KEY
        return [1 if awaiting else 0, self._register if awaiting else 0]

    def apply_snapshot_data(self, data: List[int], offset: int = 0) -> int:
        self.release_all()
        if data[offset]:
            self.begin_wait(data[offset + 1])
        else:
            self._state = KeypadState.IDLE
            self._register = None
        return 2
