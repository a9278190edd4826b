"""
Desktop hosts for the CHIP-8 VM.

The pygame host is an optional extra and is not imported here; use
`from chip8_vm.host.pygame_host import PygameHost`.
"""
