from posdb.services.auth import hash_password, verify_password


def test_hash_password_returns_bcrypt_hash():
    hashed = hash_password("mysecret")
    assert hashed != "mysecret"
    assert hashed.startswith("$2b$12$")


def test_verify_password_correct():
    hashed = hash_password("correct-password")
    assert verify_password("correct-password", hashed) is True


def test_verify_password_wrong():
    hashed = hash_password("correct-password")
    assert verify_password("wrong-password", hashed) is False


def test_hash_password_is_salted():
    assert hash_password("same") != hash_password("same")
