"""Pytest configuration and fixtures for Hue Rooms tests."""

import copy

import pytest
from pathlib import Path

from core.errors import NotFoundError
from models.state import GroupState, LightAction


class FakeBridgeClient:
    """In-memory stand-in for BridgeClient.

    Holds v1 group payloads and applies PUT actions to them the way the
    bridge does: sent fields overwrite, everything else is kept.
    """

    def __init__(self, groups: dict):
        self.groups = copy.deepcopy(groups)
        self.sent = []
        self.fetches = 0

    def get_group_state(self, group_id) -> GroupState:
        self.fetches += 1
        if str(group_id) not in self.groups:
            raise NotFoundError(f"resource, /groups/{group_id}, not available")
        return GroupState.from_payload(group_id, self.groups[str(group_id)])

    def set_group_state(self, group_id, action: LightAction) -> list:
        if str(group_id) not in self.groups:
            raise NotFoundError(f"resource, /groups/{group_id}, not available")
        payload = action.to_payload()
        self.sent.append((str(group_id), payload))

        group = self.groups[str(group_id)]
        group['action'].update(payload)
        if 'on' in payload:
            group['state'] = {'all_on': payload['on'], 'any_on': payload['on']}
        return [{'success': {f"/groups/{group_id}/action/{k}": v}} for k, v in payload.items()]

    def get_all_groups(self) -> list[GroupState]:
        return [GroupState.from_payload(gid, data) for gid, data in self.groups.items()]


@pytest.fixture
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """Point HUE_ROOMS_CONFIG at a temporary file and return its path."""
    path = tmp_path / 'hue_rooms' / 'config.json'
    monkeypatch.setenv('HUE_ROOMS_CONFIG', str(path))
    monkeypatch.delenv('HUE_ROOMS_DEBUG', raising=False)
    return path


@pytest.fixture
def living_room_payload():
    """A v1 room that is on, in colour temperature mode."""
    return {
        'name': 'Living room',
        'lights': ['1', '2', '3'],
        'type': 'Room',
        'class': 'Living room',
        'state': {'all_on': True, 'any_on': True},
        'action': {
            'on': True,
            'bri': 200,
            'ct': 300,
            'xy': [0.4573, 0.41],
            'colormode': 'ct',
            'alert': 'none',
        },
    }


@pytest.fixture
def bedroom_payload():
    """A v1 room that is off, last used in xy mode."""
    return {
        'name': 'Bedroom',
        'lights': ['4', '5'],
        'type': 'Room',
        'class': 'Bedroom',
        'state': {'all_on': False, 'any_on': False},
        'action': {
            'on': False,
            'bri': 120,
            'ct': 366,
            'xy': [0.5, 0.4],
            'colormode': 'xy',
        },
    }


@pytest.fixture
def bridge_groups(living_room_payload, bedroom_payload):
    """Groups keyed by ID, including a zone that room listings must skip."""
    return {
        '1': living_room_payload,
        '2': bedroom_payload,
        '7': {
            'name': 'Downstairs',
            'lights': ['1', '2'],
            'type': 'Zone',
            'state': {'all_on': False, 'any_on': True},
            'action': {'on': True, 'bri': 100, 'colormode': 'ct', 'ct': 250},
        },
    }


@pytest.fixture
def fake_client(bridge_groups):
    """FakeBridgeClient loaded with living room (1), bedroom (2) and a zone (7)."""
    return FakeBridgeClient(bridge_groups)
