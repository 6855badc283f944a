"""
License code codec.

Generates and validates license codes of the form ``XXXX-XXXX-XXXX-XXXX-C``:
a random body drawn from a configurable alphabet, an optional Luhn-style
mod-N checksum character, grouped into fixed-width segments.
"""
import math
import secrets
import string
from dataclasses import dataclass
from typing import List, Optional

DEFAULT_CHARSET = string.ascii_uppercase + string.digits


@dataclass(frozen=True)
class LicenseCodeConfig:
    """
    Configuration for license code generation and validation.

    Overrides are merged with ``dataclasses.replace``.
    """

    charset: str = DEFAULT_CHARSET
    part_length: int = 4
    separator: str = "-"
    total_length: int = 16
    enable_checksum: bool = True
    max_attempts: int = 10

    def __post_init__(self):
        """Validate configuration."""
        if len(self.charset) < 2:
            raise ValueError("Charset must contain at least two characters")
        if self.part_length < 1:
            raise ValueError("Part length must be positive")
        if self.total_length < 1:
            raise ValueError("Total length must be positive")
        if self.max_attempts < 1:
            raise ValueError("Max attempts must be positive")

    @property
    def formatted_length(self) -> int:
        """Number of code characters, checksum included, separators excluded."""
        return self.total_length + (1 if self.enable_checksum else 0)


DEFAULT_LICENSE_CODE_CONFIG = LicenseCodeConfig()


def _char_value(char: str) -> int:
    if "0" <= char <= "9":
        return ord(char) - ord("0")
    if "A" <= char <= "Z":
        return ord(char) - ord("A") + 10
    return 0


def calculate_checksum(body: str, charset: str = DEFAULT_CHARSET) -> str:
    """
    Calculate the checksum character for a code body.

    Characters are processed right to left. The rightmost character is taken
    as is and every second character going left is doubled; a doubled value
    above ``base - 1`` is folded into ``value // base + value % base``.

    Args:
        body: Unformatted code body (separators ``-`` and ``_`` are ignored)
        charset: Alphabet the checksum character is drawn from

    Returns:
        Checksum character
    """
    base = len(charset)
    clean = body.replace("-", "").replace("_", "")
    total = 0
    double = False
    for char in reversed(clean):
        value = _char_value(char)
        if double:
            value *= 2
            if value > base - 1:
                value = value // base + value % base
        total += value
        double = not double
    return charset[(base - total % base) % base]


def format_license_code(raw: str, part_length: int = 4, separator: str = "-") -> str:
    """Group a raw code into ``part_length`` segments joined by ``separator``."""
    parts = [raw[i:i + part_length] for i in range(0, len(raw), part_length)]
    return separator.join(parts)


def generate_license_code(config: Optional[LicenseCodeConfig] = None) -> str:
    """
    Generate a single formatted license code.

    Each body character is picked by mapping one random byte onto the
    alphabet with a modulo.

    Args:
        config: Codec configuration (defaults to ``DEFAULT_LICENSE_CODE_CONFIG``)

    Returns:
        Formatted license code
    """
    config = config or DEFAULT_LICENSE_CODE_CONFIG
    charset = config.charset
    random_bytes = secrets.token_bytes(config.total_length)
    body = "".join(charset[byte % len(charset)] for byte in random_bytes)
    if config.enable_checksum:
        body += calculate_checksum(body, charset)
    return format_license_code(body, config.part_length, config.separator)


def generate_license_codes(
    count: int, config: Optional[LicenseCodeConfig] = None
) -> List[str]:
    """Generate ``count`` codes without any uniqueness guarantee."""
    if count <= 0:
        return []
    return [generate_license_code(config) for _ in range(count)]


def validate_license_code_checksum(
    code: str, config: Optional[LicenseCodeConfig] = None
) -> bool:
    """
    Validate the trailing checksum character of a code.

    Always True when checksums are disabled.
    """
    if not code or not isinstance(code, str):
        return False

    config = config or DEFAULT_LICENSE_CODE_CONFIG
    if not config.enable_checksum:
        return True

    clean = code.replace(config.separator, "") if config.separator else code
    if len(clean) < 2:
        return False

    return calculate_checksum(clean[:-1], config.charset) == clean[-1]


def validate_license_code_format(
    code: str, config: Optional[LicenseCodeConfig] = None
) -> bool:
    """
    Validate the shape of a code against the configuration.

    Checks the segment count, the length of every segment (only the last one
    may be shorter), that every character belongs to the charset, and the
    checksum when enabled.

    Args:
        code: Formatted license code
        config: Codec configuration

    Returns:
        True if the code is well formed
    """
    if not code or not isinstance(code, str):
        return False

    config = config or DEFAULT_LICENSE_CODE_CONFIG
    expected_total = config.formatted_length
    expected_parts = math.ceil(expected_total / config.part_length)

    parts = code.split(config.separator) if config.separator else [code]
    if len(parts) != expected_parts:
        return False

    for index, part in enumerate(parts):
        if index == len(parts) - 1:
            expected_length = expected_total - index * config.part_length
        else:
            expected_length = config.part_length
        if len(part) != expected_length:
            return False
        if any(char not in config.charset for char in part):
            return False

    if config.enable_checksum:
        return validate_license_code_checksum(code, config)
    return True


def validate_license_code(code: str, config: Optional[LicenseCodeConfig] = None) -> bool:
    """Full validation: format and checksum."""
    return validate_license_code_format(code, config) and validate_license_code_checksum(
        code, config
    )
