"""Authenticated caller identity passed into every core operation."""

from dataclasses import dataclass
from typing import Any, final


@final
@dataclass(frozen=True, slots=True)
class Identity:
    """Already-authenticated user acting on files.

    The core trusts this value: credentials are verified upstream
    by whatever authenticates the request.
    """

    user_id: int
    user_name: str

    @classmethod
    def from_user(cls, user: Any) -> 'Identity':
        """Build identity from a Django auth user.

        Args:
            user: Authenticated user instance.

        Returns:
            Identity with the user's primary key and username.
        """
        return cls(user_id=user.pk, user_name=user.get_username())
