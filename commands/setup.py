"""
Setup and help commands for Hue Rooms CLI.

Contains custom Click group class for coloured help output and typo suggestions,
plus bridge discovery, user registration and configuration commands.
"""

from dataclasses import dataclass

import click
from core.auth import discover_bridges, register_user
from core.bridge import BridgeClient
from core.config import (
    clear_bridge_config,
    get_config_file,
    is_configured,
    load_bridge_config,
    update_bridge_config,
)
from core.errors import HueError, LinkButtonNotPressedError
from models.utils import find_similar_strings


@dataclass(frozen=True)
class CommandSection:
    """Represents a section in the help command."""
    name: str
    icon: str
    commands: list[tuple[str, str]]


class ColouredGroup(click.Group):
    """Custom Group class that adds colour to help output and suggests similar commands."""

    def resolve_command(self, ctx, args):
        """Resolve command with suggestions for typos."""
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            if 'No such command' in str(e):
                cmd_name = args[0] if args else ''
                suggestions = self._get_suggestions(ctx, cmd_name)

                if suggestions:
                    error_msg = f"No such command '{cmd_name}'.\n\n"
                    error_msg += click.style("Did you mean one of these?\n", fg='yellow')
                    for suggestion in suggestions:
                        error_msg += click.style(f"  • {suggestion}\n", fg='green')
                    raise click.UsageError(error_msg)
            raise

    def _get_suggestions(self, ctx, cmd_name, max_suggestions=3):
        """Visible command names closest to a mistyped one."""
        if not cmd_name:
            return []

        visible = [
            name for name in self.list_commands(ctx)
            if not getattr(self.get_command(ctx, name), 'hidden', True)
        ]
        return find_similar_strings(cmd_name, visible, limit=max_suggestions)

    def format_usage(self, ctx, formatter):
        """Format the usage line with colour."""
        formatter.write_paragraph()
        formatter.write_text(
            click.style('Usage: ', fg='cyan', bold=True) +
            click.style(f'{ctx.command_path} [OPTIONS] COMMAND [ARGS]...', fg='white')
        )

    def format_commands(self, ctx, formatter):
        """Format commands with colour."""
        commands = []
        for subcommand in self.list_commands(ctx):
            cmd = self.get_command(ctx, subcommand)
            if cmd is None or cmd.hidden:
                continue
            commands.append((subcommand, cmd.get_short_help_str(limit=500)))

        if commands:
            formatter.write_paragraph()
            formatter.write_text(click.style('Commands:', fg='yellow', bold=True))

            max_len = max(max(len(cmd[0]) for cmd in commands), 20)

            with formatter.indentation():
                for subcommand, help_text in commands:
                    formatter.write_text(
                        click.style(subcommand.ljust(max_len), fg='green') + '  ' +
                        click.style(help_text, fg='white', dim=True)
                    )


@click.command(name='help')
def help_command():
    """Display help and common commands."""
    click.echo()
    click.secho("=== Hue Rooms - Quick Reference ===", fg='cyan', bold=True)
    click.echo()

    command_sections = [
        CommandSection(
            name="SETUP",
            icon="🔌",
            commands=[
                ("discover", "Find the bridge on the network and save its IP"),
                ("discover --ip <address>", "Save a bridge IP without discovery"),
                ("register", "Create an API user (press the link button first)"),
                ("setup", "Show configuration and test the connection"),
                ("clear-config", "Forget the saved bridge and user"),
            ]
        ),
        CommandSection(
            name="ROOMS",
            icon="🏠",
            commands=[
                ("rooms", "List rooms with power, brightness and colour"),
                ("room <room>", "Show one room in detail"),
            ]
        ),
        CommandSection(
            name="CONTROL",
            icon="💡",
            commands=[
                ("power <room> [--on/--off]", "Turn a room on or off"),
                ("brightness <room> <1-254>", "Set brightness"),
                ("colour <room> --hex #ff8800", "Set colour from a hex value"),
                ("colour <room> --kelvin 2700", "Set colour temperature in Kelvin"),
                ("colour <room> --ct 370", "Set colour temperature in Mired"),
                ("colour <room> --xy 0.3 0.3", "Set CIE xy chromaticity"),
                ("set <room> [options]", "Any combination of the above"),
            ]
        ),
    ]

    for section in command_sections:
        click.secho(f"{section.icon} {section.name}", fg='yellow', bold=True)
        for cmd, desc in section.commands:
            click.echo("  ", nl=False)
            click.secho(cmd, fg='green', nl=False)
            click.echo(" " * (36 - len(cmd)) + "  " + desc)
        click.echo()

    click.secho("🔧 GLOBAL FLAGS", fg='yellow', bold=True)
    click.echo("  ", nl=False)
    click.secho("--debug", fg='cyan', nl=False)
    click.echo(" " * 29 + "  Trace bridge requests to stderr (or set HUE_ROOMS_DEBUG=1)")
    click.echo()

    click.secho("📖 For detailed help on any command:", fg='cyan')
    click.echo(f"  uv run python hue_rooms.py {click.style('<command> -h', fg='white', bold=True)}")
    click.echo()


@click.command()
@click.option('--ip', 'bridge_ip', help='Bridge IP address (skips network discovery)')
def discover_command(bridge_ip: str | None):
    """Discover the Hue bridge and save its IP address.

    The first bridge found is used. Run 'register' afterwards to create an
    API user on it.

    \b
    Examples:
      uv run python hue_rooms.py discover
      uv run python hue_rooms.py discover --ip 192.168.1.20
    """
    if not bridge_ip:
        click.echo("Discovering Hue bridges...")
        bridges = discover_bridges()

        if not bridges:
            click.secho("⚠ No bridges found via automatic discovery", fg='yellow')
            click.echo("Use 'discover --ip <address>' to set the bridge IP manually.")
            raise SystemExit(1)

        for bridge in bridges:
            click.echo(f"  • {bridge.get('internalipaddress', 'Unknown')} (id: {bridge.get('id', 'Unknown')})")

        bridge_ip = bridges[0].get('internalipaddress')

    update_bridge_config(bridge_ip=bridge_ip)
    click.secho(f"✓ Using bridge at {bridge_ip}", fg='green')


@click.command()
@click.option('--attempts', default=3, show_default=True, type=click.IntRange(1, 10),
              help='Number of times to try before giving up')
@click.option('--yes', '-y', is_flag=True, help="Don't wait for Enter before each attempt")
def register_command(attempts: int, yes: bool):
    """Create an API user on the bridge via the link button.

    Press the round link button on top of the bridge, then continue within
    30 seconds. The new username is saved to the config file.
    """
    config = load_bridge_config()
    bridge_ip = config.get('bridge_ip')
    if not bridge_ip:
        click.secho("✗ No bridge IP configured. Run 'discover' first.", fg='red', err=True)
        raise SystemExit(1)

    for attempt in range(1, attempts + 1):
        click.echo()
        click.secho("Press the LINK BUTTON on your Hue Bridge", fg='yellow', bold=True)
        if not yes:
            click.pause("Press Enter when ready...")

        click.echo(f"Registering with {bridge_ip}... (attempt {attempt}/{attempts})")
        try:
            username = register_user(bridge_ip)
        except LinkButtonNotPressedError:
            click.secho("✗ Link button not pressed.", fg='red')
            continue
        except HueError as e:
            click.secho(f"✗ Registration failed: {e}", fg='red', err=True)
            raise SystemExit(1)

        update_bridge_config(username=username)
        click.secho("✓ Successfully registered with the bridge!", fg='green', bold=True)
        click.echo(f"Credentials saved to {get_config_file()}")
        return

    click.secho(f"✗ Failed after {attempts} attempts.", fg='red', err=True)
    raise SystemExit(1)


@click.command()
def setup_command():
    """Show current bridge configuration and test connection."""
    config = load_bridge_config()
    config_file = get_config_file()

    click.echo()
    click.secho("=== Hue Bridge Configuration ===", fg='cyan', bold=True)
    click.echo()
    click.echo(f"   Path:        {config_file}{'' if config_file.exists() else ' (does not exist)'}")
    click.echo(f"   Bridge IP:   {config.get('bridge_ip') or click.style('not set', fg='yellow')}")
    click.echo(f"   Username:    {config.get('username') or click.style('not set', fg='yellow')}")
    click.echo()

    if not is_configured(config):
        click.secho("⚠ Bridge not configured", fg='yellow', bold=True)
        click.echo("Run 'discover' and then 'register' to set it up.")
        click.echo()
        return

    click.echo(click.style("Connection Test", fg='cyan', bold=True))
    try:
        groups = BridgeClient(config).get_all_groups()
    except HueError as e:
        click.secho(f"✗ Connection failed: {e}", fg='red', bold=True)
        click.echo()
        return

    rooms = [g for g in groups if g.type == 'Room']
    click.secho(f"✓ Connected to bridge at {config['bridge_ip']} ({len(rooms)} rooms)", fg='green', bold=True)
    click.echo()


@click.command()
@click.option('--yes', '-y', is_flag=True, help='Skip confirmation prompt')
def clear_config_command(yes: bool):
    """Forget the saved bridge IP and username."""
    if not yes and not click.confirm("Clear the saved bridge configuration?", default=False):
        click.echo("Cancelled.")
        return

    if clear_bridge_config():
        click.secho("✓ Bridge configuration cleared", fg='green')
    else:
        raise SystemExit(1)
