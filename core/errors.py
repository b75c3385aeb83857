"""Exception types raised when talking to the Hue Bridge."""


class HueError(Exception):
    """Base class for bridge and configuration errors."""


class ConfigError(HueError):
    """Bridge address or username missing from configuration."""


class DeviceUnreachableError(HueError):
    """The bridge could not be reached (connection refused, timeout, bad response)."""


class NotFoundError(HueError):
    """The requested group does not exist on the bridge."""


class InvalidStateError(HueError):
    """The bridge rejected one or more fields of a state update."""


class UnauthorisedError(HueError):
    """The configured username is not accepted by the bridge."""


class LinkButtonNotPressedError(HueError):
    """User registration failed because the link button was not pressed."""
