import pytest

from decorators_E2E import test_with_mock_service as with_mock_service
from mock_service import FakeSupabaseClient

from storefront.core.config.general_config import settings
from storefront.core.exceptions import AuthenticationError, NotAdminError, SignupDisabledError
from storefront.core.security.admin_auth import authenticate_admin, sign_in_admin, sign_up_admin
from storefront.core.service.supabase_connectors.roles_client import has_role


@with_mock_service(FakeSupabaseClient)
def test_authenticate_admin(fake):
    token = fake.make_admin(email="boss@example.com")

    admin = authenticate_admin(token, fake)

    assert admin.email == "boss@example.com"
    assert admin.access_token == token
    assert admin.client is fake


@with_mock_service(FakeSupabaseClient)
def test_authenticate_unknown_session(fake):
    with pytest.raises(AuthenticationError):
        authenticate_admin("not-a-session", fake)


@with_mock_service(FakeSupabaseClient)
def test_authenticate_user_without_role(fake):
    user = fake.auth.add_user("customer@example.com", "pw")
    token = fake.auth.issue_session(user).access_token

    with pytest.raises(NotAdminError):
        authenticate_admin(token, fake)


@with_mock_service(FakeSupabaseClient)
def test_failing_role_lookup_keeps_dashboard_closed(fake):
    token = fake.make_admin()
    fake.failing_rpcs.add("has_role")

    with pytest.raises(NotAdminError):
        authenticate_admin(token, fake)


@with_mock_service(FakeSupabaseClient)
def test_has_role_checks_the_role_name(fake):
    user = fake.auth.add_user("editor@example.com", "pw")
    fake.add_row("user_roles", {"user_id": user.id, "role": "editor"})

    assert has_role(user.id, "editor", fake)
    assert not has_role(user.id, "admin", fake)


@with_mock_service(FakeSupabaseClient)
def test_sign_in_admin(fake):
    fake.make_admin(email="boss@example.com", password="secret")

    session = sign_in_admin("boss@example.com", "secret", fake)

    assert session["token_type"] == "bearer"
    assert session["access_token"] in fake.auth.sessions
    assert not fake.auth.signed_out


@with_mock_service(FakeSupabaseClient)
def test_sign_in_wrong_password(fake):
    fake.make_admin(email="boss@example.com", password="secret")

    with pytest.raises(AuthenticationError):
        sign_in_admin("boss@example.com", "guess", fake)


@with_mock_service(FakeSupabaseClient)
def test_sign_in_non_admin_is_signed_out(fake):
    """
    A valid account without the admin role must not keep a session.
    """
    fake.auth.add_user("customer@example.com", "pw")

    with pytest.raises(NotAdminError):
        sign_in_admin("customer@example.com", "pw", fake)

    assert fake.auth.signed_out


def test_sign_up_disabled_by_default(fake):
    with pytest.raises(SignupDisabledError):
        sign_up_admin("new@example.com", "pw", fake, fake)

    assert fake.auth.users == {}


def test_sign_up_grants_admin_role(fake, monkeypatch):
    monkeypatch.setattr(settings, "ALLOW_ADMIN_SIGNUP", True)

    result = sign_up_admin("new@example.com", "pw", fake, fake)

    assert has_role(result["user_id"], settings.ADMIN_ROLE, fake)
    assert authenticate_admin(result["access_token"], fake).user_id == result["user_id"]
