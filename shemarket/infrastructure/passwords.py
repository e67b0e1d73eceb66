"""Password Hashing — passlib CryptContext behind the PasswordHasher protocol."""

from passlib.context import CryptContext

_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class PasslibHasher:
    def hash(self, password: str) -> str:
        return _pwd_context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        return _pwd_context.verify(password, password_hash)
