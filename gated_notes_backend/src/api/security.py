from passlib.context import CryptContext

# Unsalted single-round SHA-256, stored as 64 hex characters.
pwd_context = CryptContext(schemes=["hex_sha256"])


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)
