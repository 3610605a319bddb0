import unittest

import pytest

from core.errors import AuthError, PlannerError, StoreError
from services.auth_messages import AUTH_ERROR_MESSAGES, GENERIC_AUTH_MESSAGE, auth_error_message
from services.profile_service import ProfileService


class TestAuthMessages(unittest.TestCase):
    def test_known_codes(self):
        self.assertEqual(auth_error_message("auth/email-already-in-use"), "E-postadressen er allerede i bruk")
        self.assertEqual(auth_error_message("auth/missing-household"), "Husstanden må ha et navn")

    def test_unknown_code_gives_generic_message(self):
        self.assertEqual(auth_error_message("auth/something-new"), GENERIC_AUTH_MESSAGE)
        self.assertEqual(auth_error_message(None), GENERIC_AUTH_MESSAGE)


@pytest.fixture
def profiles(remote):
    return ProfileService(remote)


def test_register_and_get(profiles):
    profile = profiles.register("h1", "ola@nordmann.no", "  Familien Nordmann ")
    assert profile.household_name == "Familien Nordmann"
    assert profiles.get_profile("h1").email == "ola@nordmann.no"
    assert profiles.get_profile("h2") is None


@pytest.mark.parametrize(
    "email, name, code",
    [
        ("ikke-en-adresse", "Familien", "auth/invalid-email"),
        ("ola@nordmann.no", "   ", "auth/missing-household"),
    ],
)
def test_register_rejects_bad_input(profiles, email, name, code):
    with pytest.raises(AuthError) as excinfo:
        profiles.register("h1", email, name)
    assert excinfo.value.code == code


def test_register_rejects_taken_email(profiles):
    profiles.register("h1", "ola@nordmann.no", "Familien Nordmann")
    with pytest.raises(AuthError) as excinfo:
        profiles.register("h2", "ola@nordmann.no", "Familien Olsen")
    assert excinfo.value.code == "auth/email-already-in-use"


def test_store_failure_is_not_an_unknown_household(profiles, remote, monkeypatch):
    def failing(uid):
        raise StoreError("nede")

    monkeypatch.setattr(remote, "get_user_profile", failing)
    with pytest.raises(PlannerError) as excinfo:
        profiles.get_profile("h1")
    assert excinfo.value.status_code == 503
    assert excinfo.value.message == "Kunne ikke hente husstand"


def test_every_message_code_can_be_raised():
    raised = {"auth/email-already-in-use", "auth/invalid-email", "auth/missing-household", "auth/household-exists"}
    assert set(AUTH_ERROR_MESSAGES) == raised
