"""
License code masking.

Format-preserving redaction used wherever codes are displayed, e.g.
``abc-123-def`` becomes ``a*c-1*3-d*f``.
"""
import dataclasses
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

CANDIDATE_SEPARATORS = ("-", "_")


@dataclass(frozen=True)
class MaskConfig:
    """Masking options."""

    mask_char: str = "*"
    preserve_edges: bool = True
    # Strings shorter than this are returned unchanged.
    min_length: int = 3


DEFAULT_MASK_CONFIG = MaskConfig()


def _mask_segment(segment: str, mask_char: str, preserve_edges: bool) -> str:
    if len(segment) <= 2 or not preserve_edges:
        return mask_char * len(segment)
    return segment[0] + mask_char * (len(segment) - 2) + segment[-1]


def _detect_separator(code: str) -> Optional[str]:
    for separator in CANDIDATE_SEPARATORS:
        parts = code.split(separator)
        if len(parts) < 3 or not all(parts):
            continue
        others = [other for other in CANDIDATE_SEPARATORS if other != separator]
        if not any(other in code for other in others):
            return separator
    return None


def is_standard_license_format(code: Optional[str]) -> bool:
    """
    Check whether a code is segmented by a single known separator.

    A standard code has at least three non-empty segments and does not mix
    ``-`` and ``_``.
    """
    if not code:
        return False
    return _detect_separator(code) is not None


def mask_license_code(code: Optional[str], config: Optional[MaskConfig] = None) -> Optional[str]:
    """
    Mask a license code segment by segment.

    Args:
        code: Code to mask; empty values are returned as is
        config: Masking options

    Returns:
        Masked code with the same segment count and lengths
    """
    if not code:
        return code

    config = config or DEFAULT_MASK_CONFIG
    if len(code) < config.min_length:
        return code

    separator = _detect_separator(code)
    if separator is None:
        return _mask_segment(code, config.mask_char, config.preserve_edges)

    return separator.join(
        _mask_segment(part, config.mask_char, config.preserve_edges)
        for part in code.split(separator)
    )


def _masked_record(record: Any, field: str, config: MaskConfig) -> Any:
    if isinstance(record, dict):
        if field not in record:
            return dict(record)
        masked = dict(record)
        masked[field] = mask_license_code(record[field], config)
        return masked
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        if not hasattr(record, field):
            return record
        return dataclasses.replace(
            record, **{field: mask_license_code(getattr(record, field), config)}
        )
    raise TypeError(f"Cannot mask record of type {type(record).__name__}")


def mask_records(
    records: Iterable[Any],
    field: str = "code",
    config: Optional[MaskConfig] = None,
) -> List[Any]:
    """
    Mask one field across a collection of records.

    Records may be dicts or dataclass instances; a copy is returned for each
    and every other field is left untouched.
    """
    config = config or DEFAULT_MASK_CONFIG
    return [_masked_record(record, field, config) for record in records]


def get_license_mask_preview(
    code: Optional[str], config: Optional[MaskConfig] = None
) -> Dict[str, Any]:
    """Return the original code, its masked form and whether it is standard."""
    return {
        "original": code,
        "masked": mask_license_code(code, config),
        "is_standard_format": is_standard_license_format(code),
    }
