"""Unit tests for auth/credentials.py -- CredentialStore.verify().

Covers:
- valid username/password returns the stored identity
- wrong password and unknown username both return BAD_CREDENTIALS
- the unknown-username path still runs bcrypt (timing equalization)
"""

from unittest.mock import patch

from auth.credentials import CredentialStore
from auth.models import AuthFailure, Role, UserIdentity
from conftest import make_user


def test_valid_credentials_return_identity(user_store) -> None:
    created = make_user(user_store, "alice", Role.SHOP, password="wonderland")
    result = CredentialStore(user_store).verify("alice", "wonderland")
    assert result == created
    assert isinstance(result, UserIdentity)


def test_wrong_password(user_store) -> None:
    make_user(user_store, "alice", Role.SHOP, password="wonderland")
    assert CredentialStore(user_store).verify("alice", "looking-glass") is AuthFailure.BAD_CREDENTIALS


def test_unknown_username(user_store) -> None:
    assert CredentialStore(user_store).verify("nobody", "whatever") is AuthFailure.BAD_CREDENTIALS


def test_username_is_case_sensitive(user_store) -> None:
    make_user(user_store, "alice", Role.SHOP, password="wonderland")
    assert CredentialStore(user_store).verify("ALICE", "wonderland") is AuthFailure.BAD_CREDENTIALS


def test_unknown_username_still_runs_bcrypt(user_store) -> None:
    with patch("auth.credentials.verify_password", return_value=False) as mock_verify:
        CredentialStore(user_store).verify("nobody", "whatever")
    mock_verify.assert_called_once()
