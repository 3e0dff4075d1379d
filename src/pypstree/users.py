"""Account name lookups."""

import pwd
from functools import lru_cache

from pypstree.errors import UnknownOwnerError


@lru_cache(maxsize=None)
def lookup_owner(uid: int) -> str:
    """Return the account name for a UID, or ``#<uid>`` if there is none."""
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return f"#{uid}"


def validate_owner(name: str) -> None:
    """Raise UnknownOwnerError if ``name`` is not a known account."""
    try:
        pwd.getpwnam(name)
    except KeyError:
        raise UnknownOwnerError(name) from None
