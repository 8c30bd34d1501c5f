"""Username helpers used when resolving create-all collisions."""

import re
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.interfaces import UserLookupProtocol

_TRAILING_NUMBER = re.compile(r"^(.*?)(\d+)$")


def next_username(username: str) -> str:
    """Return the next candidate username.

    ``name`` becomes ``name2`` and ``name7`` becomes ``name8``.
    """
    match = _TRAILING_NUMBER.match(username)
    if match is None:
        return f"{username}2"
    stem, number = match.groups()
    return f"{stem}{int(number) + 1}"


def increment_username(
    username: str, host_id: int, lookup: "UserLookupProtocol"
) -> str:
    """Find the first unused username after ``username``.

    Args:
        username: Username that is already taken
        host_id: Host id the username belongs to
        lookup: Directory lookup used to test candidates

    Returns:
        str: Username with no existing user at ``host_id``
    """
    candidate = next_username(username)
    while lookup.lookup(candidate, host_id) is not None:
        candidate = next_username(candidate)
    return candidate


def make_username_incrementer(
    lookup: "UserLookupProtocol",
) -> Callable[[str, int], str]:
    """Bind :func:`increment_username` to a directory lookup."""

    def incrementer(username: str, host_id: int) -> str:
        return increment_username(username, host_id, lookup)

    return incrementer
