"""
ZSPR sprite tools
Convert A Link to the Past player sprites between ZSPR files, PNG sheets and ROMs
"""

__version__ = "1.0.0"

from .exceptions import (
    PaletteFileError,
    ZSPRError,
    ZSPRFormatMismatchError,
    ZSPRIntegrityError,
    ZSPRTruncatedDataError,
    ZSPRUnsupportedVariantError,
)
from .zspr_file import ZSPRFile, parse, read_zspr_file, serialize, write_zspr_file

__all__ = [
    "PaletteFileError",
    "ZSPRError",
    "ZSPRFile",
    "ZSPRFormatMismatchError",
    "ZSPRIntegrityError",
    "ZSPRTruncatedDataError",
    "ZSPRUnsupportedVariantError",
    "parse",
    "read_zspr_file",
    "serialize",
    "write_zspr_file",
]
