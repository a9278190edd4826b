"""
Command-Line Tool Tests
=======================

Tests for chip8run (headless) and chip8disasm using click's CliRunner.
"""

import logging

import pytest
from click.testing import CliRunner

from chip8_vm.cli.chip8disasm import main as disasm_main
from chip8_vm.cli.chip8run import main as run_main
from chip8_vm.cli.errors import ExitCode


def words(*values: int) -> bytes:
    return b"".join(bytes([(w >> 8) & 0xFF, w & 0xFF]) for w in values)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("DEBUG", "RENDER_SCREEN", "PLAY_SOUND", "INITIAL_COLOR", "TICK_INTERVAL", "SCALE"):
        monkeypatch.delenv(f"CHIP8_{name}", raising=False)


def write_rom(path, data: bytes) -> str:
    path.write_bytes(data)
    return str(path)


# =============================================================================
# chip8run
# =============================================================================

class TestChip8Run:
    def test_program_finishes(self, runner, tmp_path):
        rom = write_rom(tmp_path / "ok.ch8", words(0x6012, 0x1202))
        result = runner.invoke(run_main, [rom, "--no-render"])
        assert result.exit_code == ExitCode.SUCCESS
        assert "Program finished (jump to self at $202)" in result.output
        assert "Instructions executed: 2" in result.output
        assert "Frames rendered: 0" in result.output

    def test_execution_error(self, runner, tmp_path):
        rom = write_rom(tmp_path / "bad.ch8", words(0x6012, 0xF0FF))
        result = runner.invoke(run_main, [rom, "--no-render"])
        assert result.exit_code == ExitCode.EXECUTION_ERROR
        assert "$202: unrecognized opcode $F0FF" in result.output

    def test_max_ticks(self, runner, tmp_path):
        rom = write_rom(tmp_path / "loop.ch8", words(0x7001, 0x1200))
        result = runner.invoke(run_main, [rom, "--no-render", "--max-ticks", "10", "--tick-interval", "0"])
        assert result.exit_code == ExitCode.SUCCESS
        assert "Reached max ticks (10)" in result.output
        assert "Instructions executed: 10" in result.output

    def test_screenshot(self, runner, tmp_path):
        pytest.importorskip("PIL")
        rom = write_rom(tmp_path / "draw.ch8", words(0x6000, 0xA000, 0xD005, 0x1206))
        png = tmp_path / "screen.png"
        result = runner.invoke(run_main, [rom, "--no-render", "--screenshot", str(png)])
        assert result.exit_code == ExitCode.SUCCESS
        assert png.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"

    def test_debug_trace(self, runner, tmp_path, caplog):
        caplog.set_level(logging.DEBUG, logger="chip8_vm.emulator.trace")
        rom = write_rom(tmp_path / "ok.ch8", words(0x6012, 0x1202))
        result = runner.invoke(run_main, [rom, "--no-render", "--debug"])
        assert result.exit_code == ExitCode.SUCCESS
        assert "LD   V0, $12" in caplog.text

    def test_render_disabled_from_environment(self, runner, tmp_path):
        rom = write_rom(tmp_path / "ok.ch8", words(0x1200))
        result = runner.invoke(run_main, [rom], env={"CHIP8_RENDER_SCREEN": "false"})
        assert result.exit_code == ExitCode.SUCCESS
        assert "Program finished" in result.output

    def test_config_file(self, runner, tmp_path):
        rom = write_rom(tmp_path / "ok.ch8", words(0x1200))
        config = tmp_path / "chip8.toml"
        config.write_text("render_screen = false\ntick_interval = 0\n")
        result = runner.invoke(run_main, [rom, "--config", str(config)])
        assert result.exit_code == ExitCode.SUCCESS

    def test_bad_config(self, runner, tmp_path):
        rom = write_rom(tmp_path / "ok.ch8", words(0x1200))
        config = tmp_path / "chip8.toml"
        config.write_text("scale = 0\n")
        result = runner.invoke(run_main, [rom, "--no-render", "--config", str(config)])
        assert result.exit_code == ExitCode.INVALID_ARGS
        assert "Configuration error: scale:" in result.output

    def test_empty_rom(self, runner, tmp_path):
        rom = write_rom(tmp_path / "empty.ch8", b"")
        result = runner.invoke(run_main, [rom, "--no-render"])
        assert result.exit_code == ExitCode.INVALID_ARGS
        assert "empty" in result.output

    def test_missing_rom(self, runner, tmp_path):
        result = runner.invoke(run_main, [str(tmp_path / "missing.ch8"), "--no-render"])
        assert result.exit_code == ExitCode.INVALID_ARGS

    def test_version(self, runner):
        result = runner.invoke(run_main, ["--version"])
        assert result.exit_code == 0
        assert "chip8run" in result.output


# =============================================================================
# chip8disasm
# =============================================================================

class TestChip8Disasm:
    ROM = words(0x00E0, 0x6012, 0xA22A, 0xD015, 0x1208)

    def test_listing(self, runner, tmp_path):
        rom = write_rom(tmp_path / "prog.ch8", self.ROM)
        result = runner.invoke(disasm_main, [rom])
        assert result.exit_code == 0
        assert "; Disassembly of prog.ch8" in result.output
        assert "$200: 00E0  CLS" in result.output
        assert "$206: D015  DRW V0, V1, 5" in result.output
        assert "$208: 1208  JP $208" in result.output

    def test_count(self, runner, tmp_path):
        rom = write_rom(tmp_path / "prog.ch8", self.ROM)
        result = runner.invoke(disasm_main, [rom, "--count", "2"])
        assert "$202: 6012" in result.output
        assert "$204" not in result.output

    def test_address(self, runner, tmp_path):
        rom = write_rom(tmp_path / "prog.ch8", self.ROM)
        result = runner.invoke(disasm_main, [rom, "-a", "$300"])
        assert "$300: 00E0  CLS" in result.output

    def test_hex_dump(self, runner, tmp_path):
        rom = write_rom(tmp_path / "prog.ch8", self.ROM)
        result = runner.invoke(disasm_main, [rom, "--hex"])
        assert "; $200: 00 E0 60 12 A2 2A D0 15 12 08" in result.output

    def test_output_file(self, runner, tmp_path):
        rom = write_rom(tmp_path / "prog.ch8", self.ROM)
        out = tmp_path / "prog.lst"
        result = runner.invoke(disasm_main, [rom, "-o", str(out)])
        assert result.exit_code == 0
        assert "$202: 6012  LD V0, $12" in out.read_text()

    def test_invalid_address(self, runner, tmp_path):
        rom = write_rom(tmp_path / "prog.ch8", self.ROM)
        result = runner.invoke(disasm_main, [rom, "-a", "zzz"])
        assert result.exit_code == 2
        assert "Invalid address" in result.output

    def test_address_out_of_range(self, runner, tmp_path):
        rom = write_rom(tmp_path / "prog.ch8", self.ROM)
        result = runner.invoke(disasm_main, [rom, "-a", "0x1000"])
        assert result.exit_code == 2

    def test_empty_file(self, runner, tmp_path):
        rom = write_rom(tmp_path / "empty.ch8", b"")
        result = runner.invoke(disasm_main, [rom])
        assert result.exit_code == 2

    @pytest.mark.parametrize("count", ["0", "-1"])
    def test_count_must_be_positive(self, runner, tmp_path, count):
        rom = write_rom(tmp_path / "prog.ch8", self.ROM)
        result = runner.invoke(disasm_main, [rom, "--count", count])
        assert result.exit_code == ExitCode.INVALID_ARGS
        assert "$200" not in result.output
