"""
Room inspection commands.

Lists rooms from the bridge with their current action converted for display
(Kelvin instead of Mired, hex swatches instead of xy).
"""

import click
from core.errors import HueError, NotFoundError
from models.colour import kelvin_to_hex
from models.state import ColourMode, GroupState, is_set
from models.utils import describe_action, find_similar_strings, get_reconciler, swatch


def resolve_room(reconciler, room: str) -> str:
    """Turn a room argument (group ID or name) into a group ID.

    Numeric arguments are used as-is. Names are matched case-insensitively
    against the bridge's rooms, with suggestions on a miss.

    Raises:
        NotFoundError: If no room has that name
    """
    if room.isascii() and room.isdecimal():
        return room

    rooms = reconciler.list_rooms()
    for group in rooms:
        if group.name.lower() == room.lower():
            return group.id

    message = f"Room '{room}' not found."
    suggestions = find_similar_strings(room, [g.name for g in rooms], limit=3)
    if suggestions:
        message += " Did you mean: " + ", ".join(suggestions) + "?"
    raise NotFoundError(message)


def _power_label(group: GroupState) -> str:
    if group.all_on:
        return click.style('ON ', fg='green')
    if group.any_on:
        return click.style('PART', fg='yellow')
    return click.style('OFF', fg='red')


@click.command()
def rooms_command():
    """List all rooms with power, brightness and colour."""
    reconciler = get_reconciler()
    if not reconciler:
        raise SystemExit(1)

    try:
        rooms = reconciler.list_rooms()
    except HueError as e:
        click.secho(f"✗ Error listing rooms: {e}", fg='red', err=True)
        raise SystemExit(1)

    if not rooms:
        click.echo("No rooms found.")
        return

    rooms.sort(key=lambda g: g.name)

    click.secho(f"\n=== Rooms ({len(rooms)}) ===", fg='cyan', bold=True)
    click.echo()

    col_id = max(max(len(g.id) for g in rooms), len("ID"))
    col_name = max(max(len(g.name) for g in rooms), len("Room Name"))

    header = f"  {'ID':>{col_id}}  {'Room Name':<{col_name}}  {'Lights':>6}  State"
    click.echo(click.style(header, fg='white', bold=True))
    click.echo(click.style("  " + "─" * (col_id + col_name + 21), fg='white', dim=True))

    for group in rooms:
        row = f"  {group.id:>{col_id}}  {group.name:<{col_name}}  {len(group.lights):>6}  "
        click.echo(row + _power_label(group) + "  " + describe_action(group.action))
    click.echo()


@click.command()
@click.argument('room')
def room_command(room: str):
    """Show the current state of one room (by ID or name).

    \b
    Examples:
      uv run python hue_rooms.py room 1
      uv run python hue_rooms.py room "Living room"
    """
    reconciler = get_reconciler()
    if not reconciler:
        raise SystemExit(1)

    try:
        group = reconciler.get_room(resolve_room(reconciler, room))
    except HueError as e:
        click.secho(f"✗ {e}", fg='red', err=True)
        raise SystemExit(1)

    action = group.action
    click.echo()
    click.secho(f"=== {group.name} (group {group.id}) ===", fg='cyan', bold=True)
    click.echo(f"  Type:         {group.type}")
    click.echo(f"  Lights:       {len(group.lights)}")
    click.echo(f"  Power:        {_power_label(group)}")
    if is_set(action.bri):
        click.echo(f"  Brightness:   {action.bri}/254")
    if is_set(action.colormode):
        click.echo(f"  Colour mode:  {action.colormode.value}")
    if is_set(action.ct):
        marker = ' (active)' if action.colormode == ColourMode.CT else ''
        click.echo(f"  Temperature:  {swatch(kelvin_to_hex(action.ct))} {action.ct}K{marker}")
    if is_set(action.xy):
        marker = ' (active)' if action.colormode == ColourMode.XY else ''
        colour = action.color if is_set(action.color) else ''
        click.echo(f"  Colour:       {swatch(colour)} {colour} "
                   f"xy=({action.xy[0]:.4f}, {action.xy[1]:.4f}){marker}")
    click.echo()
