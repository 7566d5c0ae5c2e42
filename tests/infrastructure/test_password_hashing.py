"""Password Hashing — salted hashes, verification, malformed hashes."""

from certtrack.infrastructure.password_hashing import WerkzeugPasswordHasher


def test_hash_verifies_and_is_salted():
    hasher = WerkzeugPasswordHasher(method="pbkdf2:sha256:1000")
    first = hasher.hash("s3cret-pass")
    second = hasher.hash("s3cret-pass")
    assert first != second
    assert "s3cret-pass" not in first
    assert hasher.verify("s3cret-pass", first)
    assert not hasher.verify("wrong-pass", first)


def test_malformed_hash_does_not_verify():
    hasher = WerkzeugPasswordHasher()
    assert not hasher.verify("anything", "not-a-hash")
