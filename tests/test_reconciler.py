"""
Tests for group state reconciliation in core/reconciler.py

plan_action() and normalise_action() are pure, so most tests build a prior
GroupState by hand. reconcile_and_apply() is exercised against the in-memory
FakeBridgeClient from conftest.
"""

import pytest
from unittest.mock import MagicMock

from core.errors import DeviceUnreachableError, InvalidStateError, NotFoundError
from core.reconciler import GroupStateReconciler, normalise_action, plan_action
from models.colour import is_point_in_gamut
from models.state import UNSET, ColourMode, GroupState, LightAction, is_set
from models.types import ChromaticityPoint


def make_prior(any_on=True, **action_fields) -> GroupState:
    return GroupState(
        id='1',
        name='Living room',
        all_on=any_on,
        any_on=any_on,
        action=LightAction(**action_fields),
    )


class TestPowerAndBrightness:
    """Rules for 'on' and 'bri'."""

    def test_on_passes_through(self):
        plan = plan_action(make_prior(), LightAction(on=False))
        assert plan.action.on is False

    def test_turning_off_sends_no_brightness(self):
        plan = plan_action(make_prior(bri=200), LightAction(on=False))
        assert plan.action.bri is UNSET
        assert plan.action.to_payload() == {'on': False}

    def test_power_on_defaults_to_max_brightness(self):
        """Turning on a dark room with no known brightness uses 254."""
        plan = plan_action(make_prior(any_on=False), LightAction(on=True))
        assert plan.action.bri == 254

    def test_power_on_restores_previous_brightness(self):
        plan = plan_action(make_prior(any_on=False, bri=120), LightAction(on=True))
        assert plan.action.bri == 120

    def test_power_on_when_already_on_leaves_brightness(self):
        plan = plan_action(make_prior(any_on=True, bri=120), LightAction(on=True))
        assert plan.action.bri is UNSET

    def test_explicit_brightness_wins_over_prior(self):
        plan = plan_action(make_prior(any_on=False, bri=120), LightAction(on=True, bri=30))
        assert plan.action.bri == 30

    @pytest.mark.parametrize('requested,expected', [(0, 1), (-5, 1), (300, 254), (254, 254)])
    def test_brightness_is_clamped(self, requested, expected):
        plan = plan_action(make_prior(), LightAction(bri=requested))
        assert plan.action.bri == expected


class TestColourModeResolution:
    """Rules for choosing and re-asserting the colour mode."""

    def test_brightness_only_reasserts_colour_temperature(self):
        """A bare brightness change must re-send the previous ct and mode."""
        prior = make_prior(on=True, ct=300, colormode=ColourMode.CT, bri=200)
        plan = plan_action(prior, LightAction(bri=100))

        assert plan.action.to_payload() == {'bri': 100, 'ct': 300, 'colormode': 'ct'}

    def test_brightness_only_reasserts_xy(self):
        prior = make_prior(on=True, xy=ChromaticityPoint(0.5, 0.4), colormode=ColourMode.XY, bri=200)
        plan = plan_action(prior, LightAction(bri=100))

        assert plan.action.xy == (0.5, 0.4)
        assert plan.action.colormode == ColourMode.XY
        assert plan.action.ct is UNSET

    def test_power_on_reasserts_prior_mode(self):
        prior = make_prior(any_on=False, xy=ChromaticityPoint(0.5, 0.4), ct=366, colormode=ColourMode.XY)
        plan = plan_action(prior, LightAction(on=True))

        assert plan.action.colormode == ColourMode.XY
        assert plan.action.xy == (0.5, 0.4)
        assert plan.action.ct is UNSET

    def test_unknown_prior_mode_defaults_to_ct(self):
        plan = plan_action(make_prior(any_on=False), LightAction(on=True))
        assert plan.action.colormode == ColourMode.CT
        assert plan.action.ct is UNSET

    def test_turning_off_does_not_touch_colour(self):
        prior = make_prior(ct=300, colormode=ColourMode.CT)
        plan = plan_action(prior, LightAction(on=False))
        assert plan.action.colormode is UNSET
        assert plan.action.ct is UNSET

    def test_ct_sets_ct_mode(self):
        prior = make_prior(xy=ChromaticityPoint(0.5, 0.4), colormode=ColourMode.XY)
        plan = plan_action(prior, LightAction(ct=250))
        assert plan.action.to_payload() == {'ct': 250, 'colormode': 'ct'}

    @pytest.mark.parametrize('requested,expected', [(100, 153), (153, 153), (454, 454), (800, 500)])
    def test_ct_is_clamped(self, requested, expected):
        plan = plan_action(make_prior(), LightAction(ct=requested))
        assert plan.action.ct == expected

    def test_brightness_with_new_ct_keeps_new_ct(self):
        """Re-assertion only applies when no colour was requested."""
        prior = make_prior(ct=300, colormode=ColourMode.CT)
        plan = plan_action(prior, LightAction(bri=50, ct=400))
        assert plan.action.ct == 400
        assert plan.action.colormode == ColourMode.CT

    def test_brightness_with_new_colour_switches_to_xy(self):
        prior = make_prior(ct=300, colormode=ColourMode.CT)
        plan = plan_action(prior, LightAction(bri=50, color='#ff8800'))
        assert plan.action.colormode == ColourMode.XY
        assert plan.action.ct is UNSET
        assert is_set(plan.action.xy)

    def test_explicit_mode_is_honoured(self):
        prior = make_prior(ct=300, colormode=ColourMode.CT)
        plan = plan_action(prior, LightAction(bri=80, colormode=ColourMode.XY))
        assert plan.action.to_payload() == {'bri': 80, 'colormode': 'xy'}

    def test_explicit_mode_overrides_field_inference(self):
        plan = plan_action(make_prior(), LightAction(ct=300, colormode=ColourMode.XY))
        assert plan.action.colormode == ColourMode.XY
        assert plan.action.ct == 300


class TestColour:
    """Rules for hex and xy colour input."""

    def test_green_hex_end_to_end_plan(self):
        """#00ff00 from a CT room: xy mode, gamut green vertex, no ct."""
        prior = make_prior(ct=300, colormode=ColourMode.CT, bri=200)
        plan = plan_action(prior, LightAction(color='#00ff00'))

        assert plan.action.colormode == ColourMode.XY
        assert plan.action.ct is UNSET
        assert plan.action.xy[0] == pytest.approx(0.409, abs=0.01)
        assert plan.action.xy[1] == pytest.approx(0.518, abs=0.01)
        assert 'ct' not in plan.action.to_payload()

    def test_hex_inside_gamut_has_no_warnings(self):
        plan = plan_action(make_prior(), LightAction(color='#ffb46b'))
        x, y = plan.action.xy
        assert is_point_in_gamut(x, y)
        assert plan.warnings == []

    def test_invalid_hex_is_skipped_with_warning(self):
        prior = make_prior(ct=300, colormode=ColourMode.CT)
        plan = plan_action(prior, LightAction(color='not-a-colour'))

        assert plan.action.is_empty()
        assert len(plan.warnings) == 1
        assert 'not-a-colour' in plan.warnings[0]

    def test_invalid_hex_with_brightness_keeps_prior_colour(self):
        prior = make_prior(ct=300, colormode=ColourMode.CT)
        plan = plan_action(prior, LightAction(bri=90, color='#12'))
        assert plan.action.to_payload() == {'bri': 90, 'ct': 300, 'colormode': 'ct'}
        assert plan.warnings

    def test_raw_xy_is_gamut_clamped(self):
        plan = plan_action(make_prior(), LightAction(xy=ChromaticityPoint(0.1, 0.8)))
        assert plan.action.colormode == ColourMode.XY
        assert is_point_in_gamut(*plan.action.xy)

    def test_raw_xy_inside_gamut_passes_through(self):
        plan = plan_action(make_prior(), LightAction(xy=ChromaticityPoint(0.45, 0.41)))
        assert plan.action.xy == (0.45, 0.41)

    def test_non_finite_xy_is_skipped(self):
        plan = plan_action(make_prior(), LightAction(xy=ChromaticityPoint(float('nan'), 0.3)))
        assert plan.action.is_empty()
        assert plan.warnings

    @pytest.mark.parametrize('value', [float('nan'), float('inf'), float('-inf')])
    def test_non_finite_brightness_is_skipped(self, value):
        plan = plan_action(make_prior(colormode=ColourMode.CT, ct=300), LightAction(bri=value))
        assert plan.action.is_empty()
        assert plan.warnings == [f"Ignoring non-finite brightness {value}"]

    @pytest.mark.parametrize('value', [float('nan'), float('inf'), float('-inf')])
    def test_non_finite_ct_is_skipped(self, value):
        plan = plan_action(make_prior(), LightAction(ct=value))
        assert plan.action.is_empty()
        assert plan.warnings == [f"Ignoring non-finite ct {value}"]

    def test_non_finite_brightness_keeps_rest_of_request(self):
        """Power on still restores the prior brightness when the requested one is unusable."""
        plan = plan_action(make_prior(any_on=False, bri=80), LightAction(on=True, bri=float('nan'), ct=250))
        assert plan.action.on is True
        assert plan.action.bri == 80
        assert plan.action.ct == 250
        assert len(plan.warnings) == 1

    def test_non_finite_delta_through_reconciler(self, fake_client):
        result = GroupStateReconciler(fake_client).reconcile_and_apply('1', LightAction(ct=float('inf')))
        assert result.success
        assert fake_client.sent == []
        assert result.warnings

    def test_hex_takes_precedence_over_xy(self):
        plan = plan_action(make_prior(), LightAction(color='#ff0000', xy=ChromaticityPoint(0.3, 0.3)))
        assert plan.action.xy != (0.3, 0.3)

    def test_plan_never_sends_hex(self):
        plan = plan_action(make_prior(), LightAction(color='#00ff00'))
        assert 'color' not in plan.action.to_payload()


class TestNormalise:
    """Tests for converting bridge actions into display units."""

    def test_ct_becomes_kelvin(self):
        display = normalise_action(LightAction(ct=500))
        assert display.ct == 2000

    def test_ct_is_clamped_to_display_range(self):
        assert normalise_action(LightAction(ct=153)).ct == 6500
        assert normalise_action(LightAction(ct=600)).ct == 2000

    def test_xy_gets_hex_colour(self):
        display = normalise_action(LightAction(xy=ChromaticityPoint(0.45, 0.41), bri=254))
        assert display.color.startswith('#')
        assert len(display.color) == 7

    def test_brightness_darkens_colour(self):
        bright = normalise_action(LightAction(xy=ChromaticityPoint(0.45, 0.41), bri=254))
        dim = normalise_action(LightAction(xy=ChromaticityPoint(0.45, 0.41), bri=20))
        assert sum(int(dim.color[i:i + 2], 16) for i in (1, 3, 5)) < \
            sum(int(bright.color[i:i + 2], 16) for i in (1, 3, 5))

    def test_zero_y_has_no_colour(self):
        display = normalise_action(LightAction(xy=ChromaticityPoint(0.3, 0.0)))
        assert display.color is UNSET

    def test_input_is_not_modified(self):
        action = LightAction(ct=500)
        normalise_action(action)
        assert action.ct == 500


class TestReconcileAndApply:
    """End-to-end tests against FakeBridgeClient."""

    def test_brightness_update(self, fake_client):
        reconciler = GroupStateReconciler(fake_client)

        result = reconciler.reconcile_and_apply('1', LightAction(bri=100))

        assert result.success is True
        assert fake_client.sent == [('1', {'bri': 100, 'ct': 300, 'colormode': 'ct'})]
        assert result.normalized_action.bri == 100
        assert result.normalized_action.ct == 3333

    def test_fetches_prior_and_confirms(self, fake_client):
        reconciler = GroupStateReconciler(fake_client)
        reconciler.reconcile_and_apply('1', LightAction(on=False))
        assert fake_client.fetches == 2

    def test_green_hex_end_to_end(self, fake_client):
        reconciler = GroupStateReconciler(fake_client)

        result = reconciler.reconcile_and_apply('1', LightAction(color='#00ff00'))

        group_id, payload = fake_client.sent[0]
        assert payload['colormode'] == 'xy'
        assert 'ct' not in payload
        assert payload['xy'][0] == pytest.approx(0.409, abs=0.01)
        assert payload['xy'][1] == pytest.approx(0.518, abs=0.01)
        assert result.normalized_action.colormode == ColourMode.XY
        assert result.normalized_action.color.startswith('#')

    def test_power_on_dark_room(self, fake_client):
        reconciler = GroupStateReconciler(fake_client)

        result = reconciler.reconcile_and_apply('2', LightAction(on=True))

        payload = fake_client.sent[0][1]
        assert payload['on'] is True
        assert payload['bri'] == 120
        assert payload['colormode'] == 'xy'
        assert payload['xy'] == [0.5, 0.4]
        assert result.group.any_on is True

    def test_nothing_to_send(self, fake_client):
        reconciler = GroupStateReconciler(fake_client)

        result = reconciler.reconcile_and_apply('1', LightAction(color='bogus'))

        assert result.success is True
        assert result.sent.is_empty()
        assert fake_client.sent == []
        assert result.warnings
        assert result.normalized_action.ct == 3333

    def test_not_found_propagates(self, fake_client):
        reconciler = GroupStateReconciler(fake_client)
        with pytest.raises(NotFoundError):
            reconciler.reconcile_and_apply('99', LightAction(on=True))

    def test_transmit_failure_propagates_without_confirm(self):
        client = MagicMock()
        client.get_group_state.return_value = make_prior(ct=300, colormode=ColourMode.CT)
        client.set_group_state.side_effect = InvalidStateError("parameter, xy, not available")
        reconciler = GroupStateReconciler(client)

        with pytest.raises(InvalidStateError):
            reconciler.reconcile_and_apply('1', LightAction(color='#ff0000'))

        assert client.get_group_state.call_count == 1

    def test_confirm_failure_propagates(self):
        client = MagicMock()
        client.get_group_state.side_effect = [make_prior(), DeviceUnreachableError("timeout")]
        reconciler = GroupStateReconciler(client)

        with pytest.raises(DeviceUnreachableError):
            reconciler.reconcile_and_apply('1', LightAction(on=False))

        client.set_group_state.assert_called_once()

    def test_verbose_traces_to_stderr(self, fake_client, capsys):
        reconciler = GroupStateReconciler(fake_client, verbose=True)
        reconciler.reconcile_and_apply('1', LightAction(bri=10))

        err = capsys.readouterr().err
        assert "Current state of 'Living room'" in err
        assert 'Sending' in err

    def test_quiet_by_default(self, fake_client, capsys):
        GroupStateReconciler(fake_client).reconcile_and_apply('1', LightAction(bri=10))
        assert capsys.readouterr().err == ''


class TestRooms:
    """Tests for room listing helpers."""

    def test_list_rooms_skips_zones(self, fake_client):
        rooms = GroupStateReconciler(fake_client).list_rooms()
        assert sorted(r.name for r in rooms) == ['Bedroom', 'Living room']

    def test_list_rooms_normalises_actions(self, fake_client):
        rooms = {r.id: r for r in GroupStateReconciler(fake_client).list_rooms()}
        assert rooms['1'].action.ct == 3333
        assert rooms['2'].action.color.startswith('#')

    def test_get_room(self, fake_client):
        room = GroupStateReconciler(fake_client).get_room('2')
        assert room.name == 'Bedroom'
        assert room.action.ct == 2732
