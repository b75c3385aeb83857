"""Configuration management for the bridge connection.

This module handles:
- Locating the single configuration record (~/.hue_rooms/config.json)
- Loading/saving/clearing the bridge IP and API username
- Checking whether the record is complete enough to talk to the bridge

The loaded BridgeConfig is a plain value; callers pass it into BridgeClient
explicitly rather than reading a shared global.
"""

import json
import os
from pathlib import Path

import click

from models.types import BridgeConfig

DEFAULT_CONFIG_FILE = Path.home() / '.hue_rooms' / 'config.json'


def get_config_file() -> Path:
    """Return the config file path, honouring HUE_ROOMS_CONFIG if set."""
    override = os.getenv('HUE_ROOMS_CONFIG')
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_FILE


def empty_config() -> BridgeConfig:
    return {'bridge_ip': None, 'username': None}


def load_bridge_config() -> BridgeConfig:
    """Load bridge IP and username from the config file.

    Returns:
        BridgeConfig dict. Missing or unreadable files give an empty config.
    """
    config_file = get_config_file()
    if not config_file.exists():
        return empty_config()

    try:
        with open(config_file, 'r') as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        click.echo(f"Warning: Failed to load config from {config_file}: {e}", err=True)
        return empty_config()

    if not isinstance(data, dict):
        return empty_config()

    bridge_ip = data.get('bridge_ip')
    username = data.get('username')
    return {
        'bridge_ip': bridge_ip if isinstance(bridge_ip, str) and bridge_ip else None,
        'username': username if isinstance(username, str) and username else None,
    }


def save_bridge_config(config: BridgeConfig) -> bool:
    """Save the config record with user-only (600) permissions.

    Args:
        config: BridgeConfig to persist

    Returns:
        True if saved successfully, False otherwise
    """
    config_file = get_config_file()
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w') as f:
            json.dump({'bridge_ip': config.get('bridge_ip'),
                       'username': config.get('username')}, f, indent=4)

        os.chmod(config_file, 0o600)
        return True

    except (IOError, OSError) as e:
        click.echo(f"Error: Failed to save config to {config_file}: {e}", err=True)
        return False


def update_bridge_config(**changes) -> BridgeConfig:
    """Load the record, apply changes (bridge_ip and/or username) and save it."""
    config = load_bridge_config()
    for key in ('bridge_ip', 'username'):
        if key in changes:
            config[key] = changes[key]
    save_bridge_config(config)
    return config


def clear_bridge_config() -> bool:
    """Reset the record to an empty bridge IP and username."""
    return save_bridge_config(empty_config())


def is_configured(config: BridgeConfig) -> bool:
    """True when both bridge IP and username are present."""
    return bool(config.get('bridge_ip') and config.get('username'))
