"""Utility functions for Hue Rooms.

This module contains helper functions used across the application:
- similarity_score: Canonical fuzzy string matching algorithm
- find_similar_strings: Find similar strings using fuzzy matching
- get_reconciler: Helper to build a reconciler from the saved configuration
- describe_action: One-line human-readable summary of a group action
- swatch: Coloured block for a hex colour
"""

import os

import click

from models.colour import hex_to_rgb, kelvin_to_hex
from models.state import ColourMode, LightAction, is_set


def similarity_score(s1: str, s2: str) -> int:
    """Calculate similarity score between two strings.

    This is the canonical implementation used throughout the application
    for fuzzy matching (command typo suggestions, room name matching, etc.).

    Args:
        s1: First string to compare
        s2: Second string to compare

    Returns:
        Similarity score:
        - 100: Exact match (case-insensitive)
        - 80: Prefix match
        - 60: Substring match
        - 0-50: Character sequence match (proportional to matching characters)
        - 0: No match
    """
    s1_lower = s1.lower()
    s2_lower = s2.lower()

    # Exact match
    if s1_lower == s2_lower:
        return 100

    # Prefix match
    if s2_lower.startswith(s1_lower) or s1_lower.startswith(s2_lower):
        return 80

    # Contains match
    if s1_lower in s2_lower or s2_lower in s1_lower:
        return 60

    # Character sequence matching
    matches = 0
    j = 0
    for char in s1_lower:
        while j < len(s2_lower):
            if s2_lower[j] == char:
                matches += 1
                j += 1
                break
            j += 1

    if matches > 0:
        score = int((matches / max(len(s1_lower), len(s2_lower))) * 50)
        return score if score > 20 else 0

    return 0


def find_similar_strings(target: str, candidates: list[str], limit: int = 5) -> list[str]:
    """Find similar strings using simple similarity scoring.

    Args:
        target: The string to match against
        candidates: List of candidate strings to search
        limit: Maximum number of results to return

    Returns:
        List of similar strings, sorted by similarity score (most similar first)
    """
    scored = [(candidate, similarity_score(target, candidate)) for candidate in candidates]

    filtered = [(c, s) for c, s in scored if s > 0]
    sorted_matches = sorted(filtered, key=lambda x: x[1], reverse=True)

    return [c for c, s in sorted_matches[:limit]]


def debug_enabled(flag: bool = False) -> bool:
    """True if --debug was passed or HUE_ROOMS_DEBUG is set to a truthy value."""
    if flag:
        return True

    # Global --debug option is stored on the root context object
    ctx = click.get_current_context(silent=True)
    obj = ctx.find_object(dict) if ctx else None
    if obj and obj.get('debug'):
        return True

    return os.getenv('HUE_ROOMS_DEBUG', '').lower() in ('1', 'true', 'yes', 'on')


def get_reconciler(debug: bool = False):
    """Build a GroupStateReconciler from the saved bridge configuration.

    This helper reduces boilerplate in control commands.

    Returns:
        A GroupStateReconciler, or None if the bridge isn't configured
    """
    # Import here to avoid circular dependency (core imports models)
    from core.bridge import BridgeClient
    from core.config import is_configured, load_bridge_config
    from core.reconciler import GroupStateReconciler

    config = load_bridge_config()
    if not is_configured(config):
        click.secho("✗ Bridge not configured.", fg='red', err=True)
        click.echo("Run 'discover' and then 'register' first.", err=True)
        return None

    return GroupStateReconciler(BridgeClient(config), verbose=debug_enabled(debug))


def swatch(hex_colour: str) -> str:
    """Return a two-character block coloured with the given hex colour (truecolour terminals)."""
    rgb = hex_to_rgb(hex_colour)
    if rgb is None:
        return '  '
    return f"\x1b[48;2;{rgb.r};{rgb.g};{rgb.b}m  \x1b[0m"


def describe_action(action: LightAction) -> str:
    """Summarise a normalised action, e.g. 'ON  bri 200/254  3333K'.

    Expects 'ct' in Kelvin, as returned by the reconciler's normalise step.
    """
    parts = []
    if is_set(action.on):
        parts.append(click.style('ON ', fg='green') if action.on else click.style('OFF', fg='red'))
    if is_set(action.bri):
        parts.append(f"bri {action.bri}/254")

    mode = action.colormode if is_set(action.colormode) else None
    if mode == ColourMode.XY and is_set(action.color):
        parts.append(f"{swatch(action.color)} {action.color}")
    elif mode == ColourMode.CT and is_set(action.ct):
        parts.append(f"{swatch(kelvin_to_hex(action.ct))} {action.ct}K")
    elif is_set(action.ct):
        parts.append(f"{action.ct}K")
    elif is_set(action.color):
        parts.append(action.color)

    return '  '.join(parts)
