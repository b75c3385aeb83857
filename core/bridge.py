"""BridgeClient for Hue Bridge group (room) requests.

This module contains the thin client that talks to the v1 REST API of the
bridge. It does not cache anything: every call goes to the bridge so the
reconciler always works from fresh state.
"""

import requests
from requests.packages.urllib3.exceptions import InsecureRequestWarning

from core.errors import (
    ConfigError,
    DeviceUnreachableError,
    HueError,
    InvalidStateError,
    NotFoundError,
    UnauthorisedError,
)
from models.state import GroupState, LightAction
from models.types import BridgeConfig

# Disable SSL warnings for self-signed certificate
requests.packages.urllib3.disable_warnings(InsecureRequestWarning)

# v1 API error types
ERROR_UNAUTHORISED = 1
ERROR_RESOURCE_NOT_AVAILABLE = 3
ERROR_PARAMETER_NOT_AVAILABLE = 6
ERROR_INVALID_VALUE = 7
ERROR_DEVICE_OFF = 201


def _raise_for_bridge_errors(result) -> None:
    """Translate v1 error entries ([{"error": {...}}]) into exceptions."""
    if not isinstance(result, list):
        return

    errors = [entry['error'] for entry in result if isinstance(entry, dict) and 'error' in entry]
    if not errors:
        return

    # Report the first error, but let a missing resource win over field errors
    error = errors[0]
    for candidate in errors:
        if candidate.get('type') == ERROR_RESOURCE_NOT_AVAILABLE:
            error = candidate
            break

    error_type = error.get('type')
    description = error.get('description', 'Unknown error')

    if error_type == ERROR_UNAUTHORISED:
        raise UnauthorisedError(description)
    if error_type == ERROR_RESOURCE_NOT_AVAILABLE:
        raise NotFoundError(description)
    raise InvalidStateError(description)


class BridgeClient:
    """Manages requests to the group endpoints of a Hue Bridge (v1 API)."""

    def __init__(self, config: BridgeConfig, session: requests.Session | None = None,
                 timeout: float = 5):
        """Initialise BridgeClient.

        Args:
            config: BridgeConfig with bridge_ip and username
            session: Optional requests session (a new one is created if omitted)
            timeout: Per-request timeout in seconds

        Raises:
            ConfigError: If bridge_ip or username is missing
        """
        if not config.get('bridge_ip') or not config.get('username'):
            raise ConfigError("Bridge not configured. Run 'discover' and 'register' first.")

        self.bridge_ip = config['bridge_ip']
        self.username = config['username']
        self.base_url = f"https://{self.bridge_ip}/api/{self.username}"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.verify = False  # Accept self-signed certificate

    def _request(self, method: str, endpoint: str, data: dict | None = None):
        """Make a request to the bridge and return the decoded JSON body."""
        url = f"{self.base_url}{endpoint}"

        try:
            response = self.session.request(method, url, json=data, timeout=self.timeout, verify=False)
        except requests.exceptions.RequestException as e:
            raise DeviceUnreachableError(f"Could not reach bridge at {self.bridge_ip}: {e}") from e

        if response.status_code == 404:
            raise NotFoundError(f"{endpoint} not found on bridge")

        try:
            response.raise_for_status()
            result = response.json()
        except requests.exceptions.HTTPError as e:
            raise DeviceUnreachableError(f"Bridge returned an error: {e}") from e
        except ValueError as e:
            raise DeviceUnreachableError(f"Invalid response from bridge: {e}") from e

        _raise_for_bridge_errors(result)
        return result

    def get_group_state(self, group_id) -> GroupState:
        """Get a single group with its current state and action."""
        result = self._request('GET', f'/groups/{group_id}')
        if not isinstance(result, dict):
            raise HueError(f"Unexpected group response: {result}")
        return GroupState.from_payload(group_id, result)

    def set_group_state(self, group_id, action: LightAction) -> list:
        """Send an action to a group. Only the set fields of the action are sent.

        Returns:
            The bridge's list of success entries
        """
        return self._request('PUT', f'/groups/{group_id}/action', action.to_payload())

    def get_all_groups(self) -> list[GroupState]:
        """Get all groups (rooms, zones, entertainment areas...)."""
        result = self._request('GET', '/groups')
        if not isinstance(result, dict):
            raise HueError(f"Unexpected groups response: {result}")
        return [GroupState.from_payload(group_id, data) for group_id, data in result.items()]
