import pytest
from pydantic import ValidationError

from bloodmatch.domain.accounts import Account, ExternalIdentity, PasswordCredential, Role, RoleNotAssigned


def test_external_login_account_has_no_password():
    account = Account.from_external_login(
        id="u1", email=" Asha@Example.org ", provider="google", subject_id="1234567890"
    )

    assert isinstance(account.credential, ExternalIdentity)
    assert account.credential.provider == "google"
    assert account.has_password is False
    assert account.email == "asha@example.org"


def test_credential_union_is_discriminated_by_kind():
    pw = Account.model_validate(
        {"id": "u2", "email": "a@b.c", "credential": {"kind": "password", "password_hash": "$2b$10$abc"}}
    )
    ext = Account.model_validate(
        {"id": "u3", "email": "a@b.c", "credential": {"kind": "external", "provider": "github", "subject_id": "42"}}
    )

    assert isinstance(pw.credential, PasswordCredential)
    assert pw.has_password is True
    assert isinstance(ext.credential, ExternalIdentity)


def test_unknown_credential_kind_is_rejected():
    with pytest.raises(ValidationError):
        Account.model_validate({"id": "u4", "email": "a@b.c", "credential": {"kind": "magic"}})


def test_role_starts_unassigned_and_must_be_chosen():
    account = Account.from_external_login(id="u5", email="x@y.z", provider="google", subject_id="s")

    assert account.role is Role.UNASSIGNED
    with pytest.raises(RoleNotAssigned):
        account.require_role()

    donor = account.assign_role("donor")
    assert donor.require_role() is Role.DONOR
    # assign_role returns a copy.
    assert account.role is Role.UNASSIGNED


def test_role_can_only_be_assigned_once():
    admin = Account.from_external_login(id="u6", email="x@y.z", provider="google", subject_id="s").assign_role(
        Role.BLOODBANK_ADMIN
    )
    with pytest.raises(ValueError, match="already has role"):
        admin.assign_role(Role.HOSPITAL)


def test_cannot_assign_unassigned_or_unknown_roles():
    account = Account.from_external_login(id="u7", email="x@y.z", provider="google", subject_id="s")
    with pytest.raises(ValueError):
        account.assign_role(Role.UNASSIGNED)
    with pytest.raises(ValueError):
        account.assign_role("superuser")
