"""
Tests for optional bearer identity.
"""

import time

import jwt

from civichub.utils.auth import user_id_from_authorization, verify_token
from tests.conftest import TEST_JWT_SECRET


def _token(payload, secret=TEST_JWT_SECRET):
    return jwt.encode(payload, secret, algorithm="HS256")


class TestUserIdFromAuthorization:

    def test_user_id_claim(self):
        header = f"Bearer {_token({'userId': 'u1'})}"
        assert user_id_from_authorization(header, TEST_JWT_SECRET) == "u1"

    def test_legacy_id_claim(self):
        header = f"Bearer {_token({'id': 42})}"
        assert user_id_from_authorization(header, TEST_JWT_SECRET) == "42"

    def test_missing_or_malformed_header(self):
        assert user_id_from_authorization(None, TEST_JWT_SECRET) is None
        assert user_id_from_authorization("Token abc", TEST_JWT_SECRET) is None
        assert user_id_from_authorization("Bearer not-a-jwt", TEST_JWT_SECRET) is None

    def test_no_secret_ignores_tokens(self):
        header = f"Bearer {_token({'userId': 'u1'})}"
        assert user_id_from_authorization(header, "") is None


class TestVerifyToken:

    def test_expired_token(self):
        token = _token({"userId": "u1", "exp": int(time.time()) - 60})
        assert verify_token(token, TEST_JWT_SECRET) is None

    def test_valid_token(self):
        assert verify_token(_token({"userId": "u1"}), TEST_JWT_SECRET) == {"userId": "u1"}


def test_utils_package_docstring_names_auth_helpers():
    import civichub.utils
    from civichub.utils import auth
    for name in ("verify_token", "user_id_from_authorization"):
        assert name in civichub.utils.__doc__
        assert callable(getattr(auth, name))
