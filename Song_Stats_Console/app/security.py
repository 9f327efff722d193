from passlib.context import CryptContext

from Song_Stats_Console.app.config import settings

pwd_ctx = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    return pwd_ctx.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    try:
        return pwd_ctx.verify(password, hashed)
    except (ValueError, TypeError):
        # malformed or unknown hash
        return False


def dummy_verify() -> None:
    """Spends the time of a real verify, for lookups that found no account."""
    pwd_ctx.dummy_verify()
