"""
Encoding detection for script files.

Older Paradox titles ship their text files in Windows-1252; newer ones use
UTF-8, sometimes with a BOM. Detection runs once per file read:

1. UTF-8 BOM          -> utf-8-sig
2. UTF-16 LE/BE BOM   -> utf-16
3. valid UTF-8 bytes  -> utf-8
4. anything else      -> the legacy code page (cp1252 by default)
"""

import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

DEFAULT_LEGACY_ENCODING = "cp1252"

UTF8_BOM = b"\xef\xbb\xbf"
UTF16_LE_BOM = b"\xff\xfe"
UTF16_BE_BOM = b"\xfe\xff"


class ScriptFileNotFoundError(FileNotFoundError):
    """Raised when a script file to parse does not exist."""
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(f"File not found: {path}")


class ScriptDecodeError(Exception):
    """Raised when a script file cannot be decoded with the detected encoding."""
    def __init__(self, path: Union[str, Path], encoding: str, reason: str):
        self.path = Path(path)
        self.encoding = encoding
        super().__init__(f"Cannot decode {path} as {encoding}: {reason}")


def detect_encoding(data: bytes, legacy_encoding: str = DEFAULT_LEGACY_ENCODING) -> str:
    """Pick the codec name to decode ``data`` with."""
    if data.startswith(UTF8_BOM):
        return "utf-8-sig"
    if data.startswith(UTF16_LE_BOM) or data.startswith(UTF16_BE_BOM):
        return "utf-16"
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return legacy_encoding
    return "utf-8"


def decode_script_bytes(data: bytes, legacy_encoding: str = DEFAULT_LEGACY_ENCODING,
                        source: Union[str, Path] = "<bytes>") -> str:
    """Decode raw file bytes using detect_encoding()."""
    encoding = detect_encoding(data, legacy_encoding)
    try:
        return data.decode(encoding)
    except UnicodeDecodeError as e:
        raise ScriptDecodeError(source, encoding, str(e)) from e


def read_script_text(path: Union[str, Path], legacy_encoding: str = DEFAULT_LEGACY_ENCODING) -> str:
    """
    Read a script file and decode it.

    Raises:
        ScriptFileNotFoundError: If the path does not exist.
        ScriptDecodeError: If the bytes do not decode with the detected codec.
    """
    path = Path(path)
    if not path.is_file():
        raise ScriptFileNotFoundError(path)

    data = path.read_bytes()
    logger.debug(f"Read {path} ({len(data)} bytes)")
    return decode_script_bytes(data, legacy_encoding, path)
