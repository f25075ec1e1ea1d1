from utils.security import hash_password, needs_rehash, verify_password


def test_verify_accepts_the_hashed_password():
    hashed = hash_password("secret123")
    assert verify_password("secret123", hashed) is True


def test_verify_rejects_other_passwords():
    hashed = hash_password("secret123")
    assert verify_password("secret124", hashed) is False
    assert verify_password("secret12", hashed) is False
    assert verify_password("", hashed) is False


def test_hashes_are_salted_and_not_reversible():
    first = hash_password("secret123")
    second = hash_password("secret123")
    assert first != second
    assert "secret123" not in first
    assert first.startswith("$argon2")


def test_verify_handles_missing_or_garbage_hash():
    assert verify_password("secret123", None) is False
    assert verify_password("secret123", "") is False
    assert verify_password("secret123", "not-a-hash") is False


def test_fresh_hash_needs_no_rehash():
    assert needs_rehash(hash_password("secret123")) is False
