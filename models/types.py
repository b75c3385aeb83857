"""Type definitions for Hue Rooms CLI.

This module provides TypedDict and NamedTuple definitions for structured data
types used across the application, improving type safety and IDE autocompletion.
"""

from typing import NamedTuple, TypedDict


class BridgeConfig(TypedDict):
    """The single configuration record: bridge address and API username."""
    bridge_ip: str | None
    username: str | None


class DiscoveredBridge(TypedDict):
    """Bridge information from N-UPnP discovery."""
    id: str
    internalipaddress: str
    port: int | None


class ChromaticityPoint(NamedTuple):
    """CIE 1931 xy coordinates."""
    x: float
    y: float


class Gamut(NamedTuple):
    """Triangle of reproducible colours for a lamp, one vertex per primary."""
    red: ChromaticityPoint
    green: ChromaticityPoint
    blue: ChromaticityPoint


class RgbColour(NamedTuple):
    """8-bit sRGB colour."""
    r: int
    g: int
    b: int
