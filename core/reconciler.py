"""Group state reconciliation.

Turns a partial request ("set brightness to 100", "make it green") into the
full action a Hue group needs, based on the group's current state:

    FetchPrior -> ComputeDelta -> Transmit -> Confirm

Prior state is fetched fresh for every request; nothing is cached between
requests. Two concurrent requests against the same group can interleave and
the later one may overwrite colour choices made by the earlier one. The v1
API has no conditional writes, so this is a known limitation rather than
something handled here.
"""

import json
import math
from dataclasses import dataclass, field, replace

import click

from core.bridge import BridgeClient
from models.colour import closest_point_on_gamut, hex_to_rgb, mired_to_kelvin, rgb_to_xy, xy_to_hex
from models.state import (
    HUE_LIMITS,
    UNSET,
    ColourMode,
    GroupState,
    LightAction,
    clamp_brightness,
    clamp_kelvin,
    clamp_mired,
    is_set,
)
from models.types import ChromaticityPoint


@dataclass
class ReconcilePlan:
    """Outgoing action for the bridge plus any input that had to be skipped."""
    action: LightAction
    warnings: list[str] = field(default_factory=list)


@dataclass
class ReconcileResult:
    """Outcome of reconcile_and_apply()."""
    success: bool
    normalized_action: LightAction
    sent: LightAction
    group: GroupState | None = None
    warnings: list[str] = field(default_factory=list)


def _finite_or_unset(value, label: str, warnings: list[str]):
    if is_set(value) and not math.isfinite(value):
        warnings.append(f"Ignoring non-finite {label} {value}")
        return UNSET
    return value


def plan_action(prior: GroupState, delta: LightAction) -> ReconcilePlan:
    """Compute the action to send for a requested delta.

    Rules, applied in order:
    1. 'on' passes straight through.
    2. 'bri' is sent if requested, or when turning on a group with no light on
       (falling back to the previous brightness, then 254). Always clamped.
    3. Colour mode comes from an explicit 'colormode', else from the colour
       field being set. When only brightness/power changes, the previous mode
       and its colour value are sent again so the lamps don't drift.
    4. 'ct' (Mired) is clamped to 153-500.
    5. 'color' (hex) is converted to xy; otherwise 'xy' is used. Both are
       clamped to the lamp gamut.

    Unusable input (bad hex, non-finite numbers) is skipped with a warning.

    Fields not touched by these rules are left UNSET so the bridge keeps them.
    """
    outgoing = LightAction()
    warnings = []
    prior_action = prior.action
    requested_bri = _finite_or_unset(delta.bri, 'brightness', warnings)
    requested_ct = _finite_or_unset(delta.ct, 'ct', warnings)

    if is_set(delta.on):
        outgoing.on = delta.on

    turning_on = delta.on is True
    if is_set(requested_bri) or (turning_on and not prior.any_on):
        if is_set(requested_bri):
            bri = requested_bri
        elif is_set(prior_action.bri):
            bri = prior_action.bri
        else:
            bri = HUE_LIMITS['BRI_MAX']
        outgoing.bri = clamp_brightness(bri)

    explicit_mode = is_set(delta.colormode)
    if explicit_mode:
        outgoing.colormode = ColourMode(delta.colormode)

    if is_set(requested_ct):
        outgoing.ct = clamp_mired(requested_ct)
        if not explicit_mode:
            outgoing.colormode = ColourMode.CT

    xy = UNSET
    if is_set(delta.color):
        rgb = hex_to_rgb(delta.color)
        if rgb is None:
            warnings.append(f"Ignoring invalid colour '{delta.color}' (expected #rrggbb)")
        else:
            xy = rgb_to_xy(*rgb)
    elif is_set(delta.xy):
        x, y = delta.xy
        if math.isfinite(x) and math.isfinite(y):
            xy = ChromaticityPoint(x, y)
        else:
            warnings.append(f"Ignoring non-finite xy {tuple(delta.xy)}")

    if is_set(xy):
        outgoing.xy = closest_point_on_gamut(*xy)
        if not explicit_mode:
            outgoing.colormode = ColourMode.XY

    colour_requested = is_set(outgoing.ct) or is_set(outgoing.xy)
    if (is_set(requested_bri) or turning_on) and not explicit_mode and not colour_requested:
        prior_mode = prior_action.colormode if is_set(prior_action.colormode) else ColourMode.CT
        if prior_mode == ColourMode.CT and is_set(prior_action.ct):
            outgoing.ct = clamp_mired(prior_action.ct)
        elif prior_mode == ColourMode.XY and is_set(prior_action.xy):
            outgoing.xy = prior_action.xy
        outgoing.colormode = prior_mode

    return ReconcilePlan(action=outgoing, warnings=warnings)


def normalise_action(action: LightAction) -> LightAction:
    """Convert a bridge action into display units.

    'ct' becomes Kelvin (2000-6500) and 'xy' gets a 'color' hex swatch at the
    action's brightness. Other fields are copied as they are.
    """
    display = replace(action)

    if is_set(action.ct):
        display.ct = clamp_kelvin(mired_to_kelvin(clamp_mired(action.ct)))

    if is_set(action.xy) and action.xy[1] != 0:
        brightness = action.bri / HUE_LIMITS['BRI_MAX'] if is_set(action.bri) and action.bri else 1.0
        display.color = xy_to_hex(action.xy[0], action.xy[1], brightness)

    return display


def _trace(label: str, payload) -> None:
    click.echo(f"{label}: {json.dumps(payload, default=str)}", err=True)


class GroupStateReconciler:
    """Applies partial updates to Hue groups without losing unrelated state."""

    def __init__(self, client: BridgeClient, verbose: bool = False):
        """Initialise GroupStateReconciler.

        Args:
            client: BridgeClient (or anything with the same group methods)
            verbose: If True, trace each step to stderr
        """
        self.client = client
        self.verbose = verbose

    def plan(self, prior: GroupState, delta: LightAction) -> ReconcilePlan:
        """Compute the outgoing action without talking to the bridge."""
        return plan_action(prior, delta)

    def normalise(self, action: LightAction) -> LightAction:
        """Convert an action to display units (Kelvin, hex swatch)."""
        return normalise_action(action)

    def reconcile_and_apply(self, group_id, delta: LightAction) -> ReconcileResult:
        """Fetch prior state, compute and send the update, then re-read the group.

        Bridge errors (DeviceUnreachableError, NotFoundError, InvalidStateError)
        propagate unchanged. Nothing is retried and nothing is rolled back.

        Returns:
            ReconcileResult with the normalised post-update action
        """
        prior = self.client.get_group_state(group_id)
        if self.verbose:
            _trace(f"Current state of '{prior.name}'", {
                'state': {'all_on': prior.all_on, 'any_on': prior.any_on},
                'action': prior.action.to_payload(),
            })

        plan = self.plan(prior, delta)
        for warning in plan.warnings:
            click.secho(f"⚠ {warning}", fg='yellow', err=True)

        if plan.action.is_empty():
            if self.verbose:
                _trace("Nothing to send", delta.to_payload())
            return ReconcileResult(
                success=True,
                normalized_action=self.normalise(prior.action),
                sent=plan.action,
                group=prior,
                warnings=plan.warnings,
            )

        if self.verbose:
            _trace("Sending", plan.action.to_payload())
        self.client.set_group_state(group_id, plan.action)

        after = self.client.get_group_state(group_id)
        normalized = self.normalise(after.action)
        if self.verbose:
            _trace(f"Updated state of '{after.name}'", {
                'requested': delta.to_payload(),
                'state': {'all_on': after.all_on, 'any_on': after.any_on},
                'action': normalized.to_payload(),
            })

        return ReconcileResult(
            success=True,
            normalized_action=normalized,
            sent=plan.action,
            group=after,
            warnings=plan.warnings,
        )

    def get_room(self, group_id) -> GroupState:
        """Fetch a single group with its action in display units."""
        group = self.client.get_group_state(group_id)
        return replace(group, action=self.normalise(group.action))

    def list_rooms(self) -> list[GroupState]:
        """All groups of type 'Room', with actions in display units."""
        return [
            replace(group, action=self.normalise(group.action))
            for group in self.client.get_all_groups()
            if group.type == 'Room'
        ]
