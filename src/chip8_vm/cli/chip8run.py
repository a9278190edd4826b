"""
chip8run - CHIP-8 Runner Command-Line Interface
===============================================

Runs a CHIP-8 ROM in a pygame window, or headless for scripted runs.

Usage Examples
--------------
Play a game:
    $ chip8run pong.ch8

Log every executed instruction:
    $ chip8run maze.ch8 --debug

Run headless for 5000 ticks and save the screen:
    $ chip8run maze.ch8 --no-render --max-ticks 5000 --screenshot maze.png

Use a configuration file:
    $ chip8run pong.ch8 --config chip8.toml

Keys
----
    1 2 3 4
    Q W E R     CHIP-8 keys 0-F, row by row
    A S D F
    Z X C V

    P cycles the display color, Escape quits.

Exit Codes
----------
0 - Program finished, was stopped, or reached --max-ticks
1 - Program halted on an execution error
2 - Invalid arguments, configuration or ROM file
"""

import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click

from chip8_vm import __version__
from chip8_vm.cli.errors import ExitCode, handle_cli_exception
from chip8_vm.config import Chip8Config
from chip8_vm.emulator import BackgroundAudio, Emulator, HaltEvent
from chip8_vm.errors import Chip8Error

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool, debug: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if (verbose or debug) else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


def load_config(
    config_file: Optional[Path],
    debug: bool,
    no_render: bool,
    mute: bool,
    tick_interval: Optional[float],
) -> Chip8Config:
    """Defaults, then the config file, then environment, then flags."""
    config = Chip8Config.from_file(config_file) if config_file else Chip8Config()
    config = Chip8Config.from_env(config)
    overrides = {}
    if debug:
        overrides["debug"] = True
    if no_render:
        overrides["render_screen"] = False
    if mute:
        overrides["play_sound"] = False
    if tick_interval is not None:
        overrides["tick_interval"] = tick_interval
    return Chip8Config.from_mapping(overrides, config)


def report(emu: Emulator, event: HaltEvent) -> None:
    """Print the halt summary."""
    click.echo(f"Halted: {event}")
    click.echo(f"Instructions executed: {emu.instructions_executed}")
    click.echo(f"Frames rendered: {emu.frames_rendered}")
    if emu.tones_played:
        click.echo(f"Tones played: {emu.tones_played}")


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "rom",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--config", "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="TOML configuration file",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Log every executed instruction",
)
@click.option(
    "--no-render",
    is_flag=True,
    help="Run headless (no window, no keyboard, no sound)",
)
@click.option(
    "--mute",
    is_flag=True,
    help="Disable sound",
)
@click.option(
    "--max-ticks",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after this many ticks (default: run until the program ends)",
)
@click.option(
    "--tick-interval",
    type=click.FloatRange(min=0.0),
    default=None,
    help="Seconds to sleep after each tick (default: 0.001)",
)
@click.option(
    "--screenshot",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Save the final screen as a PNG image",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="chip8run")
def main(
    rom: Path,
    config_file: Optional[Path],
    debug: bool,
    no_render: bool,
    mute: bool,
    max_ticks: Optional[int],
    tick_interval: Optional[float],
    screenshot: Optional[Path],
    verbose: bool,
) -> None:
    """
    Run a CHIP-8 program.

    ROM is the program image, loaded at $200.
    """
    setup_logging(verbose, debug)

    try:
        config = load_config(config_file, debug, no_render, mute, tick_interval)
    except Chip8Error as e:
        handle_cli_exception(e, verbose)

    host = None
    audio = None
    if config.render_screen:
        try:
            from chip8_vm.host.pygame_host import PygameHost
        except ImportError:
            click.echo(
                "Error: pygame is required to open a window "
                "(pip install chip8-vm[host]), or use --no-render",
                err=True,
            )
            sys.exit(ExitCode.INVALID_ARGS)
        host = PygameHost(scale=config.scale, title=f"CHIP-8 - {rom.name}")
        if config.play_sound:
            audio = BackgroundAudio(host)
    else:
        # Nothing to draw on or listen to
        config = replace(config, play_sound=False)

    emu = Emulator(
        config.to_emulator_config(),
        key_input=host,
        renderer=host,
        audio=audio,
    )
    if host is not None:
        host.on_cycle_color = emu.display.cycle_color

    try:
        emu.load_rom(rom)
    except Chip8Error as e:
        handle_cli_exception(e, verbose)

    if verbose:
        click.echo(f"ROM: {rom} ({rom.stat().st_size} bytes)", err=True)

    should_continue = (lambda: not host.quit_requested) if host is not None else None
    try:
        event = emu.run(
            max_ticks=max_ticks,
            should_continue=should_continue,
            tick_interval=config.tick_interval,
        )
    except KeyboardInterrupt:
        event = emu.stop()
    finally:
        if audio is not None:
            audio.close()
        if host is not None:
            host.close()

    report(emu, event)

    if screenshot:
        try:
            screenshot.write_bytes(emu.display.render_image(scale=config.scale))
        except OSError as e:
            click.echo(f"Error writing {screenshot}: {e}", err=True)
            sys.exit(ExitCode.INVALID_ARGS)
        if verbose:
            click.echo(f"Screenshot written to: {screenshot}", err=True)

    sys.exit(ExitCode.EXECUTION_ERROR if event.reason.is_error else ExitCode.SUCCESS)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
