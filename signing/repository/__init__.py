"""Repository layer for the signing feature.

Provides data access abstractions.
"""

from signing.repository.signing_repository import SigningRepository

__all__ = [
    "SigningRepository",
]
