"""
chip8disasm - CHIP-8 Disassembler Command-Line Interface
========================================================

Lists the instructions of a CHIP-8 ROM image.

Usage Examples
--------------
Disassemble a ROM:
    $ chip8disasm pong.ch8

Limit number of instructions:
    $ chip8disasm pong.ch8 --count 20

Output to file:
    $ chip8disasm pong.ch8 -o pong.lst

Hex dump with disassembly:
    $ chip8disasm pong.ch8 --hex
"""

import sys
from pathlib import Path
from typing import Optional

import click

from chip8_vm import __version__
from chip8_vm.cli.errors import ExitCode, handle_cli_exception
from chip8_vm.disassembler import CHIP8Disassembler
from chip8_vm.emulator.memory import MEMORY_SIZE, PROGRAM_START


def parse_address(text: str) -> int:
    """Parse $hex, 0xhex or decimal."""
    if text.lower().startswith("0x"):
        return int(text, 16)
    if text.startswith("$"):
        return int(text[1:], 16)
    return int(text)


@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-a", "--address",
    type=str,
    default=f"0x{PROGRAM_START:03X}",
    help="Load address (hex with 0x or $ prefix, or decimal). Default: 0x200",
)
@click.option(
    "-c", "--count",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of instructions to disassemble (default: all)",
)
@click.option(
    "--hex",
    "show_hex",
    is_flag=True,
    help="Include hex dump before disassembly",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="chip8disasm")
def main(
    input_file: Path,
    output: Optional[Path],
    address: str,
    count: Optional[int],
    show_hex: bool,
    verbose: bool,
) -> None:
    """
    Disassemble a CHIP-8 program.

    INPUT_FILE is the ROM image to disassemble.
    """
    try:
        base_address = parse_address(address)
    except ValueError:
        click.echo(f"Error: Invalid address '{address}'", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    if not 0 <= base_address < MEMORY_SIZE:
        click.echo("Error: Address must be 0-4095 (0x000-0xFFF)", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    try:
        data = input_file.read_bytes()
    except OSError as e:
        handle_cli_exception(e, verbose)

    if len(data) == 0:
        click.echo(f"Error: {input_file} is empty", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    if verbose:
        click.echo(f"Input file: {input_file} ({len(data)} bytes)", err=True)
        click.echo(f"Base address: ${base_address:03X}", err=True)

    output_lines = [
        f"; Disassembly of {input_file.name}",
        f"; Size: {len(data)} bytes",
        f"; Base address: ${base_address:03X}",
        "",
    ]

    if show_hex:
        output_lines.append("; Hex dump:")
        output_lines.append("; " + "-" * 60)
        for i in range(0, len(data), 16):
            chunk = data[i:i + 16]
            hex_str = " ".join(f"{b:02X}" for b in chunk)
            output_lines.append(f"; ${base_address + i:03X}: {hex_str}")
        output_lines.append("; " + "-" * 60)
        output_lines.append("")

    instructions = CHIP8Disassembler().disassemble(data, start_address=base_address, count=count)
    output_lines.extend(str(instr) for instr in instructions)

    result = "\n".join(output_lines) + "\n"

    if output:
        try:
            output.write_text(result, encoding='utf-8')
        except OSError as e:
            click.echo(f"Error writing {output}: {e}", err=True)
            sys.exit(ExitCode.INVALID_ARGS)
        if verbose:
            click.echo(f"Output written to: {output}", err=True)
    else:
        click.echo(result, nl=False)

    if verbose:
        click.echo(f"Instructions disassembled: {len(instructions)}", err=True)


if __name__ == "__main__":
    main()
