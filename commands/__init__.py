"""CLI command modules.

This package contains:
- setup: Setup and help commands (discover, register, setup, clear-config)
- rooms: Room inspection commands (rooms, room)
- control: Direct control commands (power, brightness, colour, set)
"""
