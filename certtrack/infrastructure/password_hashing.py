"""Password Hashing — salted one-way hashes via werkzeug.security.

Invariants:
    - hash() never returns the plaintext and salts every call
    - verify() returns False for malformed hashes instead of raising
"""

from werkzeug.security import check_password_hash, generate_password_hash


class WerkzeugPasswordHasher:
    """PasswordHasher backed by werkzeug's scrypt/pbkdf2 implementations."""

    def __init__(self, method: str = "scrypt"):
        self.method = method

    def hash(self, password: str) -> str:
        return generate_password_hash(password, method=self.method)

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return check_password_hash(password_hash, password)
        except ValueError:
            return False
