"""
auth/passwords.py -- Credential hashing and verification (bcrypt).

Security design decisions:
  bcrypt directly rather than passlib: passlib's internal wrap-bug detection
      creates a password longer than 72 bytes, which bcrypt 4.x rejects. Direct
      usage has no compatibility shim and is actively maintained.

  Work factor: fixed per process (BCRYPT_ROUNDS, default 12, never below 10).
      The rounds are embedded in each hash, so raising the setting later does
      not break verification of older credentials.

  72-byte limit: bcrypt ignores everything past 72 bytes and recent releases
      raise instead. Inputs are truncated explicitly on both hash and verify
      so the two stay consistent.

  Timing equalization: burn() runs one verification against a dummy hash so
      the "unknown username" login path costs the same as "wrong password"
      and response time does not reveal whether a username exists.

Failure contract:
  verify() returns False on mismatch and raises CorruptCredential only when
  the stored credential cannot be parsed. hash() raises HashingFailed; there
  is never a fallback to storing plaintext.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from functools import cached_property

import bcrypt

from auth.errors import CorruptCredential, HashingFailed

DEFAULT_ROUNDS = 12
MIN_ROUNDS = 10
MIN_PASSWORD_LENGTH = 6
_BCRYPT_MAX_BYTES = 72


def _encode(plaintext: str) -> bytes:
    return plaintext.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """One-way salted password hashing with a fixed work factor.

    Usage:
        hasher = PasswordHasher(rounds=12)
        credential = hasher.hash("secret1")
        hasher.verify("secret1", credential)   # True
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        if rounds < MIN_ROUNDS:
            raise ValueError(f"bcrypt rounds must be at least {MIN_ROUNDS}, got {rounds}")
        self.rounds = rounds

    def hash(self, plaintext: str) -> str:
        """Return a bcrypt hash of plaintext with a fresh random salt."""
        try:
            salt = bcrypt.gensalt(rounds=self.rounds)
            return bcrypt.hashpw(_encode(plaintext), salt).decode("utf-8")
        except (ValueError, TypeError) as exc:
            raise HashingFailed() from exc

    def verify(self, plaintext: str, credential: str) -> bool:
        """Return True if plaintext matches credential.

        Raises CorruptCredential if credential is not a parseable bcrypt hash.
        """
        try:
            return bcrypt.checkpw(_encode(plaintext), credential.encode("utf-8"))
        except (ValueError, TypeError) as exc:
            raise CorruptCredential() from exc

    @cached_property
    def _dummy_credential(self) -> str:
        # Computed on first use, with the same rounds as real credentials.
        return self.hash("userdesk_timing_dummy")

    def burn(self, plaintext: str) -> None:
        """Spend one verification's worth of CPU and discard the result."""
        self.verify(plaintext, self._dummy_credential)
