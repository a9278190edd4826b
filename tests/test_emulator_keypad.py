"""
Keypad Tests
============

Tests for key states and the wait-for-key state machine.
"""

import pytest

from chip8_vm.emulator.keypad import DEFAULT_KEY_MAP, Keypad, KeypadState


@pytest.fixture
def keypad():
    return Keypad()


class TestKeyStates:
    def test_all_released_initially(self, keypad):
        assert keypad.pressed_keys == []
        assert keypad.states == (False,) * 16

    def test_press_release(self, keypad):
        keypad.press(0xA)
        assert keypad.is_pressed(0xA)
        keypad.release(0xA)
        assert not keypad.is_pressed(0xA)

    def test_update_replaces_all_states(self, keypad):
        keypad.press(1)
        keypad.update([k in (3, 4) for k in range(16)])
        assert keypad.pressed_keys == [3, 4]

    def test_update_pads_short_input(self, keypad):
        keypad.update([True, False])
        assert keypad.pressed_keys == [0]

    def test_update_rejects_too_many(self, keypad):
        with pytest.raises(ValueError):
            keypad.update([False] * 17)

    @pytest.mark.parametrize("key", [-1, 16])
    def test_invalid_key(self, keypad, key):
        with pytest.raises(ValueError):
            keypad.press(key)
        with pytest.raises(ValueError):
            keypad.is_pressed(key)

    def test_release_all(self, keypad):
        keypad.press(2)
        keypad.press(9)
        keypad.release_all()
        assert keypad.pressed_keys == []


class TestWaitForKey:
    def test_idle_by_default(self, keypad):
        assert keypad.state is KeypadState.IDLE
        assert keypad.awaiting_register is None
        assert keypad.resolve_wait() is None

    def test_begin_wait(self, keypad):
        keypad.begin_wait(7)
        assert keypad.is_awaiting
        assert keypad.awaiting_register == 7

    def test_unresolved_without_key(self, keypad):
        keypad.begin_wait(7)
        assert keypad.resolve_wait() is None
        assert keypad.is_awaiting

    def test_resolves_with_pressed_key(self, keypad):
        keypad.begin_wait(7)
        keypad.press(0xC)
        assert keypad.resolve_wait() == (7, 0xC)
        assert keypad.state is KeypadState.IDLE
        assert keypad.awaiting_register is None

    def test_lowest_key_wins(self, keypad):
        keypad.begin_wait(0)
        keypad.update([k in (0xE, 0x3, 0x9) for k in range(16)])
        assert keypad.resolve_wait() == (0, 0x3)

    def test_invalid_register(self, keypad):
        with pytest.raises(ValueError):
            keypad.begin_wait(16)

    def test_reset_cancels_wait(self, keypad):
        keypad.begin_wait(1)
        keypad.press(1)
        keypad.reset()
        assert keypad.state is KeypadState.IDLE
        assert keypad.pressed_keys == []

    def test_snapshot_keeps_wait(self, keypad):
        keypad.begin_wait(5)
        other = Keypad()
        assert other.apply_snapshot_data(keypad.get_snapshot_data()) == 2
        assert other.awaiting_register == 5


class TestKeyMap:
    def test_rows_in_order(self):
        assert [DEFAULT_KEY_MAP[name] for name in "1234QWERASDFZXCV"] == list(range(16))
