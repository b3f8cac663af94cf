"""
Role constants shared by the user model, the auth helpers and the admin router.
Roles are persisted as a comma-joined string on the users table.
"""

from enum import Enum


class Role(str, Enum):
    """
    Closed set of roles a principal can hold.
    Every registered user holds USER; administrators also hold ADMIN.
    """
    USER = "USER"
    ADMIN = "ADMIN"


DEFAULT_ROLES = frozenset({Role.USER})
ADMIN_ROLES = frozenset({Role.USER, Role.ADMIN})

# Separator used when storing a role set in a single column
ROLE_SEPARATOR = ","


def serialize_roles(roles) -> str:
    """Sorted, comma-joined role names, e.g. 'ADMIN,USER'."""
    return ROLE_SEPARATOR.join(sorted(Role(r).value for r in roles))


def parse_roles(raw: str | None) -> frozenset:
    """
    Inverse of serialize_roles. Unknown labels raise ValueError so a corrupt
    row never silently grants or drops a role.
    """
    if not raw:
        return frozenset()
    return frozenset(Role(part.strip()) for part in raw.split(ROLE_SEPARATOR) if part.strip())
