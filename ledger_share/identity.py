"""
Current-user identity.

The identity of the ledger owner is injected into the services that
need it. It comes from configuration, never from a constant.
"""

from dataclasses import dataclass

from ledger_share.config import get_settings


@dataclass(frozen=True)
class Identity:
    """The user who owns the local ledger."""
    email: str

    def __post_init__(self):
        if not self.email or "@" not in self.email:
            raise ValueError(f"Invalid identity email: {self.email!r}")


def get_identity() -> Identity:
    """Build the current identity from settings."""
    return Identity(email=get_settings().CURRENT_USER_EMAIL)
