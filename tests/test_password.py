"""
Tests for bcrypt hashing and the write-only ``Account.password`` attribute.
"""

import bcrypt
import pytest

from auth.password import BCRYPT_ROUNDS, hash_password, verify_password
from database.models import Account


class TestHashPassword:
    def test_hash_is_not_plaintext(self):
        hashed = hash_password("secret1")
        assert hashed != "secret1"
        assert "secret1" not in hashed

    def test_verify_roundtrip(self):
        hashed = hash_password("secret1")
        assert verify_password("secret1", hashed)
        assert not verify_password("secret2", hashed)

    def test_salted_per_call(self):
        assert hash_password("secret1") != hash_password("secret1")

    def test_default_cost_factor(self):
        hashed = hash_password("secret1")
        assert hashed.startswith(f"$2b${BCRYPT_ROUNDS:02d}$")
        assert BCRYPT_ROUNDS >= 10

    def test_malformed_hash_is_false(self):
        assert not verify_password("secret1", "not-a-bcrypt-hash")
        assert not verify_password("secret1", "")
        assert not verify_password("", bcrypt.hashpw(b"x", bcrypt.gensalt(4)).decode())


class TestAccountPassword:
    def test_assignment_hashes(self):
        account = Account(password="secret1")
        assert account.password_hash != "secret1"
        assert account.check_password("secret1")
        assert not account.check_password("wrong1")

    def test_unrelated_changes_do_not_rehash(self):
        account = Account(password="secret1", full_name="Alice")
        before = account.password_hash
        account.full_name = "Alice B"
        account.email = "b@x.com"
        assert account.password_hash == before

    def test_password_is_write_only(self):
        account = Account(password="secret1")
        with pytest.raises(AttributeError):
            account.password
