"""
Input Validation - sanitization of values entering the auction engine.

Provides validation for all external inputs to prevent:
- Integer overflows (values outside uint256)
- Malformed commitments
"""

from typing import Any, Tuple

from sealbid.crypto import COMMITMENT_SIZE, UINT256_MAX

# =============================================================================
# Constants
# =============================================================================

MAX_METADATA_LENGTH = 2048
MAX_DURATION = 10 * 365 * 24 * 3600  # ten years, in seconds


# =============================================================================
# Validation Functions
# =============================================================================


def validate_integer(
    value: Any,
    name: str,
    min_val: int = 0,
    max_val: int = UINT256_MAX,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Args:
        value: Value to validate
        name: Field name for errors
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, int):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_amount(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate a currency amount (uint256)."""
    return validate_integer(amount, name)


def validate_duration(duration: Any) -> Tuple[bool, str]:
    """Validate an auction duration in seconds (strictly positive)."""
    return validate_integer(duration, "duration", 1, MAX_DURATION)


def validate_commitment(value: Any) -> Tuple[bool, str]:
    """Validate a 32-byte commitment hash."""
    if not isinstance(value, (bytes, bytearray)):
        return False, f"commitment must be bytes, got {type(value).__name__}"
    if len(value) != COMMITMENT_SIZE:
        return False, f"commitment must be {COMMITMENT_SIZE} bytes, got {len(value)}"
    return True, ""


def validate_metadata(value: Any) -> Tuple[bool, str]:
    """Validate asset metadata (a URI or free-form descriptor)."""
    if not isinstance(value, str):
        return False, f"metadata must be str, got {type(value).__name__}"
    if len(value) > MAX_METADATA_LENGTH:
        return False, f"metadata exceeds max length {MAX_METADATA_LENGTH}"
    return True, ""


def require(result: Tuple[bool, str]) -> None:
    """Raise ValueError for a failed validation result."""
    valid, err = result
    if not valid:
        raise ValueError(err)


__all__ = [
    "validate_integer",
    "validate_amount",
    "validate_duration",
    "validate_commitment",
    "validate_metadata",
    "require",
    "MAX_METADATA_LENGTH",
    "MAX_DURATION",
]
