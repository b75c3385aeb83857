#!/usr/bin/env python3
"""
Hue Rooms Control CLI
Discover a Hue bridge and control rooms: power, brightness, colour temperature and colour.
"""

import click

from commands.setup import (
    ColouredGroup,
    help_command,
    discover_command,
    register_command,
    setup_command,
    clear_config_command
)
from commands.rooms import rooms_command, room_command
from commands.control import (
    power_command,
    brightness_command,
    colour_command,
    set_command
)


@click.group(
    cls=ColouredGroup,
    context_settings={
        'help_option_names': ['-h', '--help'],
        'max_content_width': 999  # Very wide to prevent wrapping on wide terminals
    }
)
@click.version_option(version='0.1.0', prog_name='Hue Rooms')
@click.option('--debug', is_flag=True, help='Trace bridge requests to stderr')
@click.pass_context
def cli(ctx, debug):
    """Hue Rooms Control CLI - Control the rooms on your Philips Hue bridge.

Configuration: ~/.hue_rooms/config.json (override with HUE_ROOMS_CONFIG).
Run 'discover' then 'register' for first-time setup.

Use 'help' for a quick reference of all commands.
Use 'COMMAND -h' or 'COMMAND --help' for detailed help on a specific command."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug


# Register setup and help commands
cli.add_command(help_command)
cli.add_command(discover_command, name='discover')
cli.add_command(register_command, name='register')
cli.add_command(setup_command, name='setup')
cli.add_command(clear_config_command, name='clear-config')

# Register room commands
cli.add_command(rooms_command, name='rooms')
cli.add_command(room_command, name='room')

# Register control commands
cli.add_command(power_command, name='power')
cli.add_command(brightness_command, name='brightness')
cli.add_command(colour_command, name='colour')
cli.add_command(set_command, name='set')


if __name__ == '__main__':
    cli()
