"""Identity as supplied by the external auth provider."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Identity:
    """Who the controller is acting for.

    Only two questions matter to the core: is there an authenticated user, and
    is the provider still determining that.
    """

    user_id: Optional[str] = None
    is_guest: bool = False
    loading: bool = False

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id) and not self.is_guest and not self.loading

    @classmethod
    def guest(cls) -> "Identity":
        return cls(user_id=None, is_guest=True)

    @classmethod
    def signed_in(cls, user_id: str) -> "Identity":
        if not user_id:
            raise ValueError("user_id is required for a signed-in identity")
        return cls(user_id=user_id)


__all__ = ["Identity"]
