"""Password hashing with bcrypt via passlib."""

import asyncio

from passlib.context import CryptContext

MIN_BCRYPT_ROUNDS = 10


class PasswordHasher:
    """Adaptive one-way password hashing.

    bcrypt is CPU-bound, so the async helpers run it in a worker thread.
    """

    def __init__(self, rounds: int = MIN_BCRYPT_ROUNDS) -> None:
        if rounds < MIN_BCRYPT_ROUNDS:
            raise ValueError(f"bcrypt cost factor must be >= {MIN_BCRYPT_ROUNDS}, got {rounds}")
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )
        # Verified against when the email is unknown so both login failures cost the same.
        self._dummy_hash = self._context.hash("not-a-real-password")

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hashed: str | None) -> bool:
        if not hashed:
            self._context.verify(password, self._dummy_hash)
            return False
        return self._context.verify(password, hashed)

    async def hash_async(self, password: str) -> str:
        return await asyncio.to_thread(self.hash, password)

    async def verify_async(self, password: str, hashed: str | None) -> bool:
        return await asyncio.to_thread(self.verify, password, hashed)
