"""
Command-line tools:

- chip8run: run a ROM in a window (or headless with --no-render)
- chip8disasm: list the instructions of a ROM
"""
