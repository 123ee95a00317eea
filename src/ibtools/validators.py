"""
Input validation for ibtools commands.

Validates user-supplied identifiers before any filesystem mutation.
"""

from uuid import UUID

from ibtools.errors import InvalidIdentifierError


def parse_target_id(value: str | UUID) -> UUID:
    """
    Parse a target infobase identifier.

    Args:
        value: UUID string in canonical or any form accepted by ``uuid.UUID``.

    Returns:
        The parsed UUID.

    Raises:
        InvalidIdentifierError: If *value* is not a well-formed UUID.
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(value.strip())
    except (ValueError, AttributeError):
        raise InvalidIdentifierError(
            f"Target infobase identifier '{value}' is not a valid UUID",
            stage="validate",
            path=str(value),
        ) from None


def validate_extension_name(name: str) -> None:
    """
    Reject extension names that cannot be used as a single folder name.

    Raises:
        InvalidIdentifierError: If *name* is empty, '.', '..', or contains
            a path separator.
    """
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise InvalidIdentifierError(
            f"Extension name '{name}' cannot be used as a folder name",
            stage="classify",
            path=name,
        )
