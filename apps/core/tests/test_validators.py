"""
Tests for InputValidator.
"""
import pytest
from hypothesis import given, strategies as st

from apps.core.exceptions import InvalidArgument
from apps.core.validators import InputValidator


class TestEmailAndPassword:

    @pytest.mark.parametrize('email', ['a@example.com', 'first.last+tag@sub.example.org', ' pad@example.com '])
    def test_valid_emails(self, email):
        assert InputValidator.validate_email(email)

    @pytest.mark.parametrize('email', ['', None, 'plain', 'no-domain@', '@example.com', 'a@b', 42])
    def test_invalid_emails(self, email):
        assert not InputValidator.validate_email(email)

    def test_password_length(self):
        assert InputValidator.validate_password('123456')
        assert not InputValidator.validate_password('12345')
        assert not InputValidator.validate_password(None)


class TestNames:

    def test_name_is_trimmed(self):
        assert InputValidator.normalize_name('  Ops  ') == 'Ops'

    @pytest.mark.parametrize('name', ['', '   ', None, 'x' * 101])
    def test_invalid_names(self, name):
        with pytest.raises(InvalidArgument):
            InputValidator.normalize_name(name, 'Group name')


class TestNormalizeIds:

    def test_drops_none_non_positive_and_duplicates(self):
        assert InputValidator.normalize_ids([3, None, 1, 3, 0, -2, 2]) == [3, 1, 2]

    def test_none_is_empty(self):
        assert InputValidator.normalize_ids(None) == []

    @pytest.mark.parametrize('ids', ['1,2', 5])
    def test_non_list_rejected(self, ids):
        with pytest.raises(InvalidArgument):
            InputValidator.normalize_ids(ids)

    @pytest.mark.parametrize('ids', [[1, 'two'], [True], [1.5]])
    def test_non_integer_rejected(self, ids):
        with pytest.raises(InvalidArgument):
            InputValidator.normalize_ids(ids)

    @given(st.lists(st.integers(min_value=-5, max_value=50)))
    def test_result_is_unique_positive_in_first_seen_order(self, ids):
        """Property: output keeps first occurrences of positive IDs."""
        result = InputValidator.normalize_ids(ids)

        assert len(result) == len(set(result))
        assert all(value > 0 for value in result)
        assert result == [v for i, v in enumerate(ids) if v > 0 and v not in ids[:i]]
