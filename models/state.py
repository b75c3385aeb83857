"""Light state models for Hue rooms (v1 group resources).

A LightAction describes what a group is doing, or what a caller wants it to
do. Every field defaults to UNSET, which means "no change requested" and is
never the same thing as None, False or 0. The reconciler relies on that
distinction to decide which fields go to the bridge.
"""

import math
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any

from models.types import ChromaticityPoint


class _Unset:
    """Sentinel type for fields the caller did not touch."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return 'UNSET'

    def __bool__(self):
        return False


UNSET: Any = _Unset()


def is_set(value) -> bool:
    """Return True if a LightAction field holds a real value."""
    return value is not UNSET


class ColourMode(str, Enum):
    """Which colour field on a group action is authoritative."""
    CT = 'ct'
    XY = 'xy'


# Hue bridge limits
HUE_LIMITS = {
    'CT_MIN': 153,      # 6500K (cool daylight)
    'CT_MAX': 500,      # 2000K (warm candlelight)
    'BRI_MIN': 1,
    'BRI_MAX': 254,
    'KELVIN_MIN': 2000,
    'KELVIN_MAX': 6500,
}


def _clamp(value, low, high) -> int:
    # NaN has no ordering, so it falls to the lower limit; infinities saturate
    if math.isnan(value):
        return low
    return round(max(low, min(high, value)))


def clamp_brightness(bri: int) -> int:
    """Clamp brightness to the range the bridge accepts (1-254)."""
    return _clamp(bri, HUE_LIMITS['BRI_MIN'], HUE_LIMITS['BRI_MAX'])


def clamp_mired(ct: int) -> int:
    """Clamp colour temperature to 153-500 Mired."""
    return _clamp(ct, HUE_LIMITS['CT_MIN'], HUE_LIMITS['CT_MAX'])


def clamp_kelvin(kelvin: int) -> int:
    """Clamp colour temperature to 2000-6500 K for display."""
    return _clamp(kelvin, HUE_LIMITS['KELVIN_MIN'], HUE_LIMITS['KELVIN_MAX'])


@dataclass
class LightAction:
    """Requested or reported state of a group.

    Field names follow the v1 API ('bri', 'ct', 'colormode'); 'color' is a
    derived '#rrggbb' string, used for input from the CLI and for display.
    """
    on: bool = UNSET
    bri: int = UNSET
    colormode: ColourMode = UNSET
    ct: int = UNSET
    xy: ChromaticityPoint = UNSET
    color: str = UNSET

    def is_empty(self) -> bool:
        """True when no field is set."""
        return not any(is_set(getattr(self, f.name)) for f in fields(self))

    def to_payload(self) -> dict:
        """Build the JSON body for the bridge, containing only set fields."""
        payload = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if not is_set(value):
                continue
            if isinstance(value, ColourMode):
                value = value.value
            elif f.name == 'xy':
                value = [value[0], value[1]]
            payload[f.name] = value
        return payload

    @classmethod
    def from_payload(cls, data: dict | None) -> 'LightAction':
        """Parse a v1 action dict. Missing keys stay UNSET; unknown keys are ignored."""
        data = data or {}
        action = cls()
        if 'on' in data:
            action.on = bool(data['on'])
        if data.get('bri') is not None:
            action.bri = int(data['bri'])
        if data.get('ct') is not None:
            action.ct = int(data['ct'])
        xy = data.get('xy')
        if xy is not None and len(xy) == 2:
            action.xy = ChromaticityPoint(float(xy[0]), float(xy[1]))
        if data.get('color') is not None:
            action.color = data['color']
        mode = data.get('colormode')
        if mode in (ColourMode.CT.value, ColourMode.XY.value):
            action.colormode = ColourMode(mode)
        return action


@dataclass
class GroupState:
    """A v1 group (room or zone) as reported by the bridge."""
    id: str
    name: str
    type: str = 'Room'
    all_on: bool = False
    any_on: bool = False
    action: LightAction = field(default_factory=LightAction)
    lights: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, group_id, data: dict) -> 'GroupState':
        """Build a GroupState from a GET /groups/<id> response body."""
        state = data.get('state') or {}
        return cls(
            id=str(group_id),
            name=data.get('name', 'Unknown'),
            type=data.get('type', 'Unknown'),
            all_on=bool(state.get('all_on', False)),
            any_on=bool(state.get('any_on', False)),
            action=LightAction.from_payload(data.get('action')),
            lights=list(data.get('lights', [])),
        )
