"""
Control commands for direct manipulation of rooms.

Includes power, brightness, colour and a combined 'set' command. Every command
builds a partial LightAction and hands it to the reconciler, which fills in
whatever the bridge needs to keep the rest of the room's state intact.
"""

import click
from core.errors import HueError
from models.colour import DivisionHazardError, kelvin_to_mired
from models.state import HUE_LIMITS, ColourMode, LightAction
from models.types import ChromaticityPoint
from models.utils import describe_action, get_reconciler
from commands.rooms import resolve_room


def apply_to_room(room: str, delta: LightAction):
    """Reconcile and apply a delta to a room, printing the resulting state.

    Exits with status 1 if the bridge isn't configured or rejects the update.
    """
    reconciler = get_reconciler()
    if not reconciler:
        raise SystemExit(1)

    try:
        group_id = resolve_room(reconciler, room)
        result = reconciler.reconcile_and_apply(group_id, delta)
    except HueError as e:
        click.secho(f"✗ Failed to control room '{room}': {e}", fg='red', err=True)
        raise SystemExit(1)

    name = result.group.name if result.group else room
    if result.sent.is_empty():
        click.secho(f"⚠ Nothing to change for {name}", fg='yellow')
    else:
        click.echo(f"✓ {name}: {describe_action(result.normalized_action)}")
    return result


def build_delta(on: bool | None = None, bri: int | None = None, ct: int | None = None,
                kelvin: int | None = None, hex_colour: str | None = None,
                xy: tuple[float, float] | None = None, mode: str | None = None) -> LightAction:
    """Build a LightAction from CLI option values (None means not given)."""
    delta = LightAction()
    if on is not None:
        delta.on = on
    if bri is not None:
        delta.bri = bri
    if kelvin is not None:
        try:
            delta.ct = kelvin_to_mired(kelvin)
        except DivisionHazardError:
            raise click.BadParameter("Kelvin must be non-zero", param_hint='--kelvin')
    if ct is not None:
        delta.ct = ct
    if hex_colour is not None:
        delta.color = hex_colour
    if xy is not None:
        delta.xy = ChromaticityPoint(*xy)
    if mode is not None:
        delta.colormode = ColourMode(mode)
    return delta


@click.command()
@click.argument('room')
@click.option('--on/--off', default=True, help='Turn room on or off')
def power_command(room: str, on: bool):
    """Turn a room ON or OFF.

    Turning on a room that is fully off restores its previous brightness
    and colour.

    \b
    Examples:
      uv run python hue_rooms.py power "Bedroom" --on
      uv run python hue_rooms.py power 3 --off
    """
    apply_to_room(room, build_delta(on=on))


@click.command()
@click.argument('room')
@click.argument('brightness', type=click.IntRange(HUE_LIMITS['BRI_MIN'], HUE_LIMITS['BRI_MAX']))
def brightness_command(room: str, brightness: int):
    """Set brightness of a room (1-254), keeping its colour.

    \b
    Examples:
      uv run python hue_rooms.py brightness "Bedroom" 200
      uv run python hue_rooms.py brightness 3 50
    """
    apply_to_room(room, build_delta(bri=brightness))


@click.command()
@click.argument('room')
@click.option('--hex', '-x', 'hex_colour', help='Colour as #rrggbb')
@click.option('--xy', type=(float, float), help='CIE xy chromaticity, e.g. --xy 0.3 0.3')
@click.option('--ct', '-t', type=int, help='Colour temperature in Mired (153-500)')
@click.option('--kelvin', '-k', type=int, help='Colour temperature in Kelvin (2000-6500)')
def colour_command(room: str, hex_colour: str | None, xy: tuple[float, float] | None,
                   ct: int | None, kelvin: int | None):
    """Set colour or temperature of a room.

    Out-of-range temperatures are clamped to what the lamps support and
    colours are clamped to the lamp gamut.

    \b
    Examples:
      uv run python hue_rooms.py colour "Bedroom" --hex "#ff8800"
      uv run python hue_rooms.py colour "Bedroom" --kelvin 2700
      uv run python hue_rooms.py colour "Bedroom" -t 400
      uv run python hue_rooms.py colour 3 --xy 0.45 0.41
    """
    given = [v for v in (hex_colour, xy, ct, kelvin) if v is not None]
    if len(given) != 1:
        click.echo("Error: Please specify exactly one of --hex, --xy, --ct or --kelvin")
        raise SystemExit(2)

    apply_to_room(room, build_delta(ct=ct, kelvin=kelvin, hex_colour=hex_colour, xy=xy))


@click.command(name='set')
@click.argument('room')
@click.option('--on/--off', default=None, help='Turn room on or off')
@click.option('--bri', '-b', type=int, help='Brightness (1-254, clamped)')
@click.option('--hex', '-x', 'hex_colour', help='Colour as #rrggbb')
@click.option('--xy', type=(float, float), help='CIE xy chromaticity')
@click.option('--ct', '-t', type=int, help='Colour temperature in Mired (clamped to 153-500)')
@click.option('--kelvin', '-k', type=int, help='Colour temperature in Kelvin')
@click.option('--mode', type=click.Choice([m.value for m in ColourMode]), help='Force colour mode')
def set_command(room: str, on: bool | None, bri: int | None, hex_colour: str | None,
                xy: tuple[float, float] | None, ct: int | None, kelvin: int | None, mode: str | None):
    """Apply any combination of changes to a room in one request.

    Fields you don't mention keep their current value on the bridge.

    \b
    Examples:
      uv run python hue_rooms.py set "Kitchen" --on --bri 180 --kelvin 3000
      uv run python hue_rooms.py set 3 --hex "#00ff00"
    """
    delta = build_delta(on=on, bri=bri, ct=ct, kelvin=kelvin, hex_colour=hex_colour, xy=xy, mode=mode)
    if delta.is_empty():
        click.echo("Error: Nothing to set. See 'set -h' for options.")
        raise SystemExit(2)

    apply_to_room(room, delta)
