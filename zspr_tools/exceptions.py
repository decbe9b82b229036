"""Custom exceptions for the ZSPR sprite tools"""


class ZSPRError(Exception):
    """Base exception for all ZSPR tool errors."""


class ZSPRFormatMismatchError(ZSPRError):
    """Raised for an obsolete or foreign file format (bad flag or extension)."""


class ZSPRUnsupportedVariantError(ZSPRError):
    """Raised when the sprite type field does not describe a player sprite."""


class ZSPRIntegrityError(ZSPRError):
    """Raised when the stored checksum does not match the file contents."""


class ZSPRTruncatedDataError(ZSPRError, IndexError):
    """Raised when a buffer is shorter than a fixed-size field requires."""


class PaletteFileError(ZSPRError):
    """Raised for malformed palette files."""
