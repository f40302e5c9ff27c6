"""Public identity data models."""

from dataclasses import dataclass


@dataclass
class UserProfile:
    """Public profile of an identity, owned by the identity service."""

    id: str
    username: str
    email: str
