from passlib.context import CryptContext

from .settings import Settings


class PasswordHasher:
    """
    One-way password hashing with argon2id.
    """

    def __init__(self, settings: Settings):
        self._context = CryptContext(
            schemes=["argon2"],
            deprecated="auto",
            argon2__type="id",
            argon2__time_cost=settings.ARGON2_TIME_COST,
            argon2__memory_cost=settings.ARGON2_MEMORY_COST,
            argon2__parallelism=settings.ARGON2_PARALLELISM,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, hashed_password: str) -> bool:
        return self._context.verify(password, hashed_password)

    def dummy_verify(self) -> None:
        """
        Spends the same time as a real verification, for unknown accounts.
        """
        self._context.dummy_verify()
