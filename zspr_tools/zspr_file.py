#!/usr/bin/env python3
"""
ZSPR (.zspr) v1.0 container format

Layout (little-endian):

    flag "ZSPR" (4) | version (1) | checksum (4) | sprite offset (4)
    sprite size (2) | palette offset (4) | palette size (2)
    sprite type (2) | reserved (6)
    sprite name (UTF-16LE, NUL) | author (UTF-16LE, NUL) | author ROM name (ASCII, NUL)
    sprite data | palette data | glove data

The checksum field holds the 16-bit byte sum of the file followed by its
complement. A consistent sum/complement pair always adds 0x1FE to the byte
sum, so the sum is taken with the field counted as 00 00 FF FF.
"""

import struct
from pathlib import Path
from typing import Optional, Union

from .constants import (
    CHECKSUM_PLACEHOLDER,
    DEFAULT_AUTHOR_NAME,
    DEFAULT_SPRITE_NAME,
    GLOVE_DATA_SIZE,
    HEADER_CHECKSUM,
    HEADER_PALETTE_OFFSET,
    HEADER_PALETTE_SIZE,
    HEADER_RESERVED,
    HEADER_SIZE,
    HEADER_SPRITE_OFFSET,
    HEADER_SPRITE_SIZE,
    HEADER_SPRITE_TYPE,
    HEADER_VERSION,
    MAX_ZSPR_FILE_SIZE,
    NAME_ROM_MAX_LENGTH,
    PAL_DATA_SIZE,
    SPRITE_DATA_SIZE,
    SPRITE_TYPE_PLAYER,
    ZSPR_EXTENSION,
    ZSPR_FLAG,
    ZSPR_PALETTE_BLOCK_SIZE,
    ZSPR_SPEC,
    ZSPR_VERSION,
)
from .exceptions import (
    ZSPRFormatMismatchError,
    ZSPRIntegrityError,
    ZSPRTruncatedDataError,
    ZSPRUnsupportedVariantError,
)
from .logging_config import get_logger
from .palette_utils import gloves_are_null, resolve_gloves
from .security_utils import validate_file_path, validate_output_path

logger = get_logger(__name__)

UTF16_CODEC = "utf-16-le"
UTF16_ERRORS = "surrogatepass"


def derive_rom_author_name(name: str) -> str:
    """
    Reduce an author name to what the ROM credits can show.

    Characters outside ASCII are dropped and the result is cut to
    NAME_ROM_MAX_LENGTH characters.
    """
    return "".join(c for c in name if ord(c) < 0x80)[:NAME_ROM_MAX_LENGTH]


class ZSPRFile:
    """All data carried by a .zspr file"""

    def __init__(self, sprite_data: Optional[bytes] = None,
                 palette_data: Optional[bytes] = None,
                 glove_data: Optional[bytes] = None,
                 sprite_name: str = DEFAULT_SPRITE_NAME,
                 author_name: str = DEFAULT_AUTHOR_NAME,
                 author_name_rom: str = ""):
        self.sprite_data = bytes(sprite_data) if sprite_data is not None else bytes(SPRITE_DATA_SIZE)
        self.palette_data = bytes(palette_data) if palette_data is not None else bytes(PAL_DATA_SIZE)
        self.glove_data = bytes(glove_data) if glove_data is not None else bytes(GLOVE_DATA_SIZE)
        self.sprite_name = sprite_name
        self.author_name = author_name
        self.author_name_rom = author_name_rom

        # Header values, refreshed by parse()
        self.version = ZSPR_VERSION
        self.sprite_type = SPRITE_TYPE_PLAYER
        self.sprite_data_size = SPRITE_DATA_SIZE
        self.palette_data_size = ZSPR_PALETTE_BLOCK_SIZE

    @property
    def author_name_rom(self) -> str:
        """Author name for the ROM credits; derived from author_name when not set."""
        return self._author_name_rom or derive_rom_author_name(self.author_name or "")

    @author_name_rom.setter
    def author_name_rom(self, value: str) -> None:
        self._author_name_rom = derive_rom_author_name(value or "")

    @property
    def has_custom_gloves(self) -> bool:
        return not gloves_are_null(self.glove_data)

    def set_name_from_path(self, path: Union[str, Path]) -> None:
        """Use the file name (without extension) as the sprite name."""
        self.sprite_name = Path(path).stem

    def to_bytes(self) -> bytes:
        return serialize(self)

    @classmethod
    def from_bytes(cls, data: bytes) -> "ZSPRFile":
        return parse(data)

    def __str__(self) -> str:
        name = self.sprite_name if self.sprite_name is not None else DEFAULT_SPRITE_NAME
        author = self.author_name if self.author_name is not None else DEFAULT_AUTHOR_NAME
        return f"'{name}' by {author}"

    def __repr__(self) -> str:
        return (
            f"ZSPRFile(sprite_name={self.sprite_name!r}, "
            f"author_name={self.author_name!r}, "
            f"author_name_rom={self.author_name_rom!r})"
        )


def calculate_checksum(stream: bytes) -> bytes:
    """
    Calculate the checksum field for a ZSPR byte stream.

    Args:
        stream: Complete file contents

    Returns:
        4 bytes: 16-bit sum and its complement, both little-endian
    """
    start, size = HEADER_CHECKSUM
    if len(stream) < start + size:
        raise ZSPRTruncatedDataError("Stream too short to hold a checksum")

    total = sum(stream) - sum(stream[start:start + size]) + sum(CHECKSUM_PLACEHOLDER)
    checksum = total & 0xFFFF
    return struct.pack("<HH", checksum, checksum ^ 0xFFFF)


def verify_checksum(stream: bytes) -> None:
    """
    Compare the stored checksum with a fresh one.

    Raises:
        ZSPRIntegrityError: If either half of the checksum does not match
    """
    start, size = HEADER_CHECKSUM
    expected = calculate_checksum(stream)
    stored = bytes(stream[start:start + size])
    if stored != expected:
        logger.debug(
            f"Checksum mismatch: stored {stored.hex()}, calculated {expected.hex()}"
        )
        raise ZSPRIntegrityError("Bad checksum; file may be corrupted.")


def _check_name(text: str, field: str) -> str:
    if "\x00" in text:
        raise ValueError(f"{field} must not contain NUL characters")
    return text


def _encode_utf16(text: str) -> bytes:
    return text.encode(UTF16_CODEC, UTF16_ERRORS) + b"\x00\x00"


def _encode_rom_name(text: str) -> bytes:
    return text.encode("latin-1") + b"\x00"


def serialize(zspr: ZSPRFile) -> bytes:
    """
    Build the byte stream of a ZSPR file.

    Offsets are patched in once the name fields are laid out, all-zero
    glove data is replaced by the vanilla colors, and the checksum is
    always recalculated.

    Args:
        zspr: File to serialize

    Returns:
        Complete file contents
    """
    if len(zspr.sprite_data) != SPRITE_DATA_SIZE:
        raise ValueError(
            f"Sprite data must be {SPRITE_DATA_SIZE} bytes, got {len(zspr.sprite_data)}"
        )
    if len(zspr.palette_data) != PAL_DATA_SIZE:
        raise ValueError(
            f"Palette data must be {PAL_DATA_SIZE} bytes, got {len(zspr.palette_data)}"
        )
    if len(zspr.glove_data) != GLOVE_DATA_SIZE:
        raise ValueError(
            f"Glove data must be {GLOVE_DATA_SIZE} bytes, got {len(zspr.glove_data)}"
        )

    stream = bytearray(ZSPR_FLAG)
    stream.append(ZSPR_VERSION)
    stream += CHECKSUM_PLACEHOLDER
    stream += bytes(HEADER_SPRITE_OFFSET[1])
    stream += struct.pack("<H", SPRITE_DATA_SIZE)
    stream += bytes(HEADER_PALETTE_OFFSET[1])
    stream += struct.pack("<H", ZSPR_PALETTE_BLOCK_SIZE)
    stream += struct.pack("<H", SPRITE_TYPE_PLAYER)
    stream += bytes(HEADER_RESERVED[1])

    stream += _encode_utf16(_check_name(zspr.sprite_name or "", "Sprite name"))
    stream += _encode_utf16(_check_name(zspr.author_name or "", "Author name"))
    stream += _encode_rom_name(_check_name(zspr.author_name_rom, "Author ROM name"))

    struct.pack_into("<I", stream, HEADER_SPRITE_OFFSET[0], len(stream))
    stream += zspr.sprite_data

    struct.pack_into("<I", stream, HEADER_PALETTE_OFFSET[0], len(stream))
    stream += zspr.palette_data

    if gloves_are_null(zspr.glove_data):
        logger.debug("No glove colors set; writing vanilla gloves")
    stream += resolve_gloves(zspr.glove_data)

    start, size = HEADER_CHECKSUM
    stream[start:start + size] = calculate_checksum(stream)

    return bytes(stream)


def _read_utf16(data: bytes, loc: int, field: str) -> tuple[str, int]:
    start = loc
    while True:
        if loc + 2 > len(data):
            raise ZSPRTruncatedDataError(f"Unterminated {field} at offset {start}")
        if data[loc] == 0 and data[loc + 1] == 0:
            return data[start:loc].decode(UTF16_CODEC, UTF16_ERRORS), loc + 2
        loc += 2


def _read_ascii(data: bytes, loc: int, field: str) -> tuple[str, int]:
    end = data.find(b"\x00", loc)
    if end == -1:
        raise ZSPRTruncatedDataError(f"Unterminated {field} at offset {loc}")
    return data[loc:end].decode("latin-1"), end + 1


def _read_block(data: bytes, offset: int, size: int, field: str) -> bytes:
    if offset + size > len(data):
        raise ZSPRTruncatedDataError(
            f"{field} at offset 0x{offset:X} needs {size} bytes, "
            f"file has {max(len(data) - offset, 0)}"
        )
    return data[offset:offset + size]


def parse(data: bytes) -> ZSPRFile:
    """
    Read a ZSPR byte stream.

    Args:
        data: Complete file contents

    Returns:
        Parsed ZSPRFile

    Raises:
        ZSPRFormatMismatchError: Flag is not "ZSPR"
        ZSPRUnsupportedVariantError: Sprite type is not a player sprite
        ZSPRIntegrityError: Checksum mismatch
        ZSPRTruncatedDataError: Data ends inside a field
    """
    data = bytes(data)

    flag_start, flag_size = 0, len(ZSPR_FLAG)
    if len(data) < flag_size:
        raise ZSPRTruncatedDataError("File too short to hold a ZSPR flag")
    if data[flag_start:flag_size] != ZSPR_FLAG:
        raise ZSPRFormatMismatchError(
            f"Obsolete or foreign file format; please convert to {ZSPR_SPEC}"
        )
    if len(data) < HEADER_SIZE:
        raise ZSPRTruncatedDataError(
            f"File too short to hold a ZSPR header ({len(data)} bytes)"
        )

    (sprite_type,) = struct.unpack_from("<H", data, HEADER_SPRITE_TYPE[0])
    if sprite_type != SPRITE_TYPE_PLAYER:
        raise ZSPRUnsupportedVariantError(
            f"The selected sprite is not a playable character sprite "
            f"(type 0x{sprite_type:04X})."
        )

    verify_checksum(data)

    sprite_name, loc = _read_utf16(data, HEADER_SIZE, "sprite name")
    author_name, loc = _read_utf16(data, loc, "author name")
    author_name_rom, _ = _read_ascii(data, loc, "author ROM name")

    (sprite_offset,) = struct.unpack_from("<I", data, HEADER_SPRITE_OFFSET[0])
    (palette_offset,) = struct.unpack_from("<I", data, HEADER_PALETTE_OFFSET[0])

    sprite_data = _read_block(data, sprite_offset, SPRITE_DATA_SIZE, "Sprite data")
    palette_block = _read_block(
        data, palette_offset, ZSPR_PALETTE_BLOCK_SIZE, "Palette data"
    )

    zspr = ZSPRFile(
        sprite_data=sprite_data,
        palette_data=palette_block[:PAL_DATA_SIZE],
        glove_data=palette_block[PAL_DATA_SIZE:],
        sprite_name=sprite_name,
        author_name=author_name,
    )
    # Stored as read; only names set by callers are reduced to ASCII
    zspr._author_name_rom = author_name_rom
    zspr.version = data[HEADER_VERSION[0]]
    zspr.sprite_type = sprite_type
    (zspr.sprite_data_size,) = struct.unpack_from("<H", data, HEADER_SPRITE_SIZE[0])
    (zspr.palette_data_size,) = struct.unpack_from("<H", data, HEADER_PALETTE_SIZE[0])

    logger.debug(f"Parsed {zspr} (version {zspr.version}, {len(data)} bytes)")
    return zspr


def has_zspr_extension(path: Union[str, Path]) -> bool:
    return Path(path).suffix.lower() == f".{ZSPR_EXTENSION}"


def _check_extension(path: Union[str, Path]) -> None:
    if not has_zspr_extension(path):
        raise ZSPRFormatMismatchError(f"File is not a .{ZSPR_EXTENSION} file: {path}")


def read_zspr_file(path: Union[str, Path]) -> ZSPRFile:
    """
    Read and verify a .zspr file.

    Raises:
        ZSPRFormatMismatchError: Wrong extension or flag
        SecurityError: Unsafe or oversized path
    """
    _check_extension(path)
    path = validate_file_path(path, max_size=MAX_ZSPR_FILE_SIZE)

    with open(path, "rb") as f:
        data = f.read()

    zspr = parse(data)
    logger.info(f"Loaded {zspr} from {path}")
    return zspr


def write_zspr_file(path: Union[str, Path], zspr: ZSPRFile) -> str:
    """
    Write a .zspr file.

    A blank sprite name is replaced by the file name.

    Returns:
        Absolute path of the written file
    """
    _check_extension(path)
    if not zspr.sprite_name:
        zspr.set_name_from_path(path)

    path = validate_output_path(path)
    data = serialize(zspr)

    with open(path, "wb") as f:
        f.write(data)

    logger.info(f"Wrote {zspr} to {path} ({len(data)} bytes)")
    return path
