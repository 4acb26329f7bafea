"""Test cases for the appstandard_lite exception hierarchy."""

import pytest

from appstandard_lite.lite_exceptions import (
    AppStandardError,
    BundleError,
    CollectionKindMismatchError,
    CollectionNotFoundError,
    ConfigurationError,
    MergeValidationError,
    RRuleExpansionError,
    RRuleParseError,
)

pytestmark = [pytest.mark.unit, pytest.mark.fast]


class TestExceptionHierarchy:
    """Test the exception hierarchy is properly structured."""

    def test_all_exceptions_inherit_from_base(self):
        """All custom exceptions should inherit from AppStandardError."""
        exceptions = [
            MergeValidationError,
            CollectionNotFoundError,
            CollectionKindMismatchError,
            BundleError,
            RRuleExpansionError,
            RRuleParseError,
            ConfigurationError,
        ]

        for exc_class in exceptions:
            assert issubclass(exc_class, AppStandardError)
            assert issubclass(exc_class, Exception)

    def test_kind_mismatch_is_a_validation_error(self):
        """Callers mapping validation errors to 400 also catch kind mismatches."""
        with pytest.raises(MergeValidationError):
            raise CollectionKindMismatchError("calendar vs address_book")

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            raise ConfigurationError("bad config")

    def test_not_found_is_not_a_validation_error(self):
        assert not issubclass(CollectionNotFoundError, MergeValidationError)

    def test_exception_messages_are_preserved(self):
        msg = "Collection not found: cal-9"
        assert str(CollectionNotFoundError(msg)) == msg
