"""Exceptions raised while parsing and building RTP packets."""


class RTPError(ValueError):
    """Base class for all RTP errors."""


class HeaderSizeInsufficientError(RTPError):
    """The buffer is too short to hold the RTP header."""


class HeaderSizeInsufficientForExtensionError(RTPError):
    """The buffer is too short to hold the declared header extension."""


class TooSmallError(RTPError):
    """The buffer is too small for the requested operation."""


class HeaderExtensionNotFoundError(RTPError):
    """The requested header extension does not exist or has the wrong profile."""


class HeaderExtensionsNotEnabledError(RTPError):
    """Header extensions are not enabled on this header."""


class ExtensionIDRangeError(RTPError):
    """The extension ID is outside the range allowed by its profile."""


class ExtensionSizeError(RTPError):
    """The extension payload is larger than its profile allows."""


class InvalidPaddingError(RTPError):
    """The padding bit is set but no padding size is given."""


class ShortBufferError(RTPError):
    """The destination buffer is too short for the serialized data."""