"""Tests for translating provider error codes into auth error codes."""

import pytest

from identity.auth import AUTH_ERROR_MESSAGES, AuthErrorCode, auth_error, map_provider_error
from shared.errors import AuthError, StorefrontError


class TestMapProviderError:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("EMAIL_EXISTS", AuthErrorCode.EMAIL_ALREADY_IN_USE),
            ("WEAK_PASSWORD", AuthErrorCode.WEAK_PASSWORD),
            ("INVALID_EMAIL", AuthErrorCode.INVALID_EMAIL),
            ("EMAIL_NOT_FOUND", AuthErrorCode.USER_NOT_FOUND),
            ("INVALID_PASSWORD", AuthErrorCode.WRONG_PASSWORD),
            ("INVALID_LOGIN_CREDENTIALS", AuthErrorCode.INVALID_CREDENTIALS),
            ("USER_DISABLED", AuthErrorCode.USER_DISABLED),
            ("TOO_MANY_ATTEMPTS_TRY_LATER", AuthErrorCode.TOO_MANY_REQUESTS),
            ("NETWORK_REQUEST_FAILED", AuthErrorCode.NETWORK_ERROR),
            ("FEDERATED_USER_ID_ALREADY_LINKED", AuthErrorCode.ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL),
        ],
    )
    def test_known_codes(self, raw, expected):
        assert map_provider_error(raw) is expected

    @pytest.mark.parametrize("raw", ["SOMETHING_NEW", "", None, "HTTP_500"])
    def test_unknown_codes_map_to_unknown(self, raw):
        assert map_provider_error(raw) is AuthErrorCode.UNKNOWN

    def test_codes_are_case_and_space_insensitive(self):
        assert map_provider_error(" email_exists ") is AuthErrorCode.EMAIL_ALREADY_IN_USE


class TestAuthError:
    def test_every_code_has_a_message(self):
        assert set(AUTH_ERROR_MESSAGES) == set(AuthErrorCode)

    def test_auth_error_carries_code_and_message(self):
        error = auth_error(AuthErrorCode.WEAK_PASSWORD)

        assert isinstance(error, AuthError)
        assert isinstance(error, StorefrontError)
        assert error.code is AuthErrorCode.WEAK_PASSWORD
        assert error.user_message == "Password should be at least 6 characters."
        assert str(error) == error.user_message
