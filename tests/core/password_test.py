from authsession.core.auth import get_password_hash, verify_password


class TestPasswordHashing:
    """Tests for password hashing helpers."""

    def test_hash_is_not_plaintext(self, pre_hashed_password: str, default_password: str):
        assert pre_hashed_password != default_password

    def test_verify_correct_password(self, pre_hashed_password: str, default_password: str):
        assert verify_password(default_password, pre_hashed_password) is True

    def test_verify_wrong_password(self, pre_hashed_password: str):
        assert verify_password("wrong-password", pre_hashed_password) is False

    def test_verify_without_hash(self, default_password: str):
        assert verify_password(default_password, None) is False

    def test_hashes_are_salted(self):
        assert get_password_hash("same") != get_password_hash("same")
