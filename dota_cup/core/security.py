from passlib.context import CryptContext

# bcrypt backends newer than passlib 1.7.4 fail its self-check, pbkdf2 is pure python.
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)
