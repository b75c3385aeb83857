"""
Bridge discovery and user registration.

Handles N-UPnP bridge discovery and link button registration against the
bridge. Persisting the results is left to core.config.
"""

import click
import requests
from requests.packages.urllib3.exceptions import InsecureRequestWarning

from core.errors import DeviceUnreachableError, HueError, LinkButtonNotPressedError
from models.types import DiscoveredBridge

# Disable SSL warnings for self-signed certificate
requests.packages.urllib3.disable_warnings(InsecureRequestWarning)

DISCOVERY_URL = 'https://discovery.meethue.com/'
DEFAULT_DEVICE_TYPE = 'hue_rooms#cli'

# v1 API error type returned while the link button has not been pressed
LINK_BUTTON_ERROR = 101


def discover_bridges(timeout: float = 5) -> list[DiscoveredBridge]:
    """Discover Hue bridges on the network using N-UPnP.

    Uses the Philips discovery service at https://discovery.meethue.com/
    to find bridges on the same network.

    Returns:
        List of bridge dicts with keys: id, internalipaddress, port.
        Empty list if discovery fails or no bridges found
    """
    try:
        response = requests.get(DISCOVERY_URL, timeout=timeout)
        response.raise_for_status()
        bridges = response.json()

        # Sort by IP address for consistency
        return sorted(bridges, key=lambda b: b.get('internalipaddress', ''))

    except requests.exceptions.HTTPError as e:
        if e.response is not None and e.response.status_code == 429:
            click.secho("⚠ Philips discovery service rate limit reached", fg='yellow', err=True)
            click.echo("You can enter your bridge IP manually with 'discover --ip'.", err=True)
        else:
            click.echo(f"Bridge discovery failed: {e}", err=True)
        return []
    except requests.exceptions.RequestException as e:
        click.echo(f"Bridge discovery failed: {e}", err=True)
        return []
    except (ValueError, AttributeError) as e:
        click.echo(f"Failed to parse discovery response: {e}", err=True)
        return []


def discover_bridge() -> str | None:
    """Return the address of the first discovered bridge, or None."""
    bridges = discover_bridges()
    if not bridges:
        return None
    return bridges[0].get('internalipaddress')


def register_user(bridge_ip: str, device_type: str = DEFAULT_DEVICE_TYPE,
                  timeout: float = 10) -> str:
    """Create a new API user on the bridge.

    The link button on the bridge must have been pressed within the last
    30 seconds.

    Args:
        bridge_ip: Bridge IP address
        device_type: Application identifier (devicetype)

    Returns:
        The new API username

    Raises:
        LinkButtonNotPressedError: The bridge answered with error 101
        DeviceUnreachableError: The bridge could not be reached
        HueError: Any other error reported by the bridge
    """
    url = f"https://{bridge_ip}/api"

    try:
        response = requests.post(url, json={'devicetype': device_type},
                                 verify=False, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.RequestException as e:
        raise DeviceUnreachableError(f"Could not reach bridge at {bridge_ip}: {e}") from e
    except ValueError as e:
        raise DeviceUnreachableError(f"Invalid response from bridge at {bridge_ip}: {e}") from e

    if isinstance(data, list) and data:
        entry = data[0]
        if 'success' in entry:
            return entry['success']['username']
        if 'error' in entry:
            error = entry['error']
            if error.get('type') == LINK_BUTTON_ERROR:
                raise LinkButtonNotPressedError(error.get('description', 'link button not pressed'))
            raise HueError(error.get('description', 'Unknown error'))

    raise HueError(f"Unexpected response from bridge: {data}")
