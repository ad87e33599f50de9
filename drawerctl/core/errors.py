"""Domain-specific errors for drawerctl."""


class DrawerctlError(Exception):
    """Base error for drawerctl."""


class ConfigurationError(DrawerctlError):
    """Raised when a request cannot be resolved to any network or serial target."""


class ConfigLoadError(DrawerctlError):
    """Raised when reading configuration sources fails."""


class ConfigValidationError(DrawerctlError):
    """Raised when a configuration file does not conform to schema or semantics."""


class DeviceAccessError(DrawerctlError):
    """Raised when the serial device-access capability is unavailable."""


class SerialSelectionError(DrawerctlError):
    """Raised when no serial device can be chosen for a request."""


class TransportError(DrawerctlError):
    """Base transport error."""


class TransportConnectError(TransportError):
    """Raised when a connection or port open is refused or unreachable."""


class TransportSendError(TransportError):
    """Raised when a command frame cannot be written."""


class TransportTimeoutError(TransportError):
    """Raised when a connect, open or write does not finish in time."""
