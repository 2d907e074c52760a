import string

import pytest

from authsession.services.random import TOKEN_ALPHABET, U64_MAX, RandomSource


class TestRandomSource:
    """Tests for RandomSource."""

    def test_random_string_has_requested_length(self):
        source = RandomSource()

        assert len(source.random_string(64)) == 64

    def test_random_string_uses_alphabet_only(self):
        source = RandomSource()

        value = source.random_string(500)

        assert set(value) <= set(string.ascii_letters + string.digits)
        assert "-" not in value

    def test_random_strings_are_unique(self):
        source = RandomSource()

        values = {source.random_string(32) for _ in range(100)}

        assert len(values) == 100

    def test_custom_alphabet(self):
        source = RandomSource(alphabet="ab")

        assert set(source.random_string(100)) <= {"a", "b"}

    @pytest.mark.parametrize("alphabet", ["", "abc-"])
    def test_rejects_unusable_alphabet(self, alphabet: str):
        with pytest.raises(ValueError):
            RandomSource(alphabet=alphabet)

    def test_rejects_non_positive_length(self):
        with pytest.raises(ValueError):
            RandomSource().random_string(0)

    def test_random_int_is_inclusive(self):
        source = RandomSource()

        values = {source.random_int(1, 3) for _ in range(300)}

        assert values == {1, 2, 3}

    def test_random_int_single_value_range(self):
        assert RandomSource().random_int(7, 7) == 7

    def test_random_int_rejects_empty_range(self):
        with pytest.raises(ValueError):
            RandomSource().random_int(5, 4)

    def test_random_u64_in_range(self):
        source = RandomSource()

        for _ in range(50):
            assert 0 <= source.random_u64() <= U64_MAX

    def test_default_alphabet(self):
        assert TOKEN_ALPHABET == string.ascii_letters + string.digits
