"""Authorization gate."""

from collections.abc import Iterable
from typing import Protocol


class IAuthorizationGate(Protocol):
    """Decides whether a Telegram user may talk to the bot."""

    def is_authorized(self, user_id: int) -> bool:
        ...


class AuthorizationGate:
    """Membership test against the configured allow-list.

    An empty allow-list rejects everyone.
    """

    def __init__(self, authorized_users: Iterable[int]):
        self._authorized_users = frozenset(authorized_users)

    def is_authorized(self, user_id: int) -> bool:
        return user_id in self._authorized_users
