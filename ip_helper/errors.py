class AppError(Exception):
    """Base application error for the IP helper service."""


class ConfigurationError(AppError):
    """Raised when settings are invalid or the geo database cannot be opened."""


class MalformedAddressError(AppError):
    """Raised when a transport address has no usable host/port pair."""


class MissingIdentityContextError(AppError):
    """Raised when a handler needs the caller identity but none was attached to the request."""


class TemplateFetchError(AppError):
    """Raised when the HTML template cannot be loaded."""


class IpProviderError(AppError):
    """Base error for geolocation backend failures."""


class InvalidIpError(IpProviderError):
    """Raised when the supplied IP address is syntactically invalid."""


class ReservedIpError(IpProviderError):
    """Raised when the supplied IP address is reserved/private (e.g. 127.0.0.1, 192.168.x.x)."""


class IpNotFoundError(IpProviderError):
    """Raised when no geolocation information is found for the IP."""


class UpstreamServiceError(IpProviderError):
    """Raised when the geolocation backend itself fails."""
