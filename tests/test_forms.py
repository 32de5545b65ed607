import pytest

from inkwell.forms import PasswordChangeForm, ProfileForm, SignInForm, validate


def test_sign_in_form_accepts_valid_credentials():
    sub = validate(SignInForm, {"email": "alice@example.com", "password": "Passw0rd"})
    assert sub.ok
    assert sub.value.email == "alice@example.com"


def test_sign_in_form_reports_required_fields():
    sub = validate(SignInForm, {})
    assert not sub.ok
    assert sub.field_errors == {
        "email": ["Email is required"],
        "password": ["Password is required"],
    }


@pytest.mark.parametrize(
    "password, message",
    [
        ("Pass1", "Password must be at least 8 characters"),
        ("passwordonly", "Password must contain at least one letter and one number"),
        ("12345678", "Password must contain at least one letter and one number"),
        ("a1" * 128, "Password must be less than 255 characters"),
    ],
)
def test_password_policy_messages(password, message):
    sub = validate(SignInForm, {"email": "alice@example.com", "password": password})
    assert sub.field_errors == {"password": [message]}


def test_sign_in_form_rejects_malformed_email():
    sub = validate(SignInForm, {"email": "not-an-email", "password": "Passw0rd"})
    assert sub.field_errors == {"email": ["Please enter a valid email address"]}


@pytest.mark.parametrize("email", ["x@y..z", ".a@example.com", "a@-x.com", "a..b@example.com", "Alice <alice@example.com>"])
def test_email_syntax_is_checked_strictly(email):
    sub = validate(SignInForm, {"email": email, "password": "Passw0rd"})
    assert sub.field_errors == {"email": ["Please enter a valid email address"]}


def test_email_is_trimmed_but_keeps_its_case():
    sub = validate(SignInForm, {"email": "  Alice@Example.COM ", "password": "Passw0rd"})
    assert sub.ok
    assert sub.value.email == "Alice@Example.COM"


def test_password_change_form_happy_path():
    sub = validate(
        PasswordChangeForm,
        {"currentPassword": "Passw0rd", "newPassword": "NewPass1", "confirmNewPassword": "NewPass1"},
    )
    assert sub.ok
    assert sub.value.current_password == "Passw0rd"
    assert sub.value.new_password == "NewPass1"


def test_password_change_confirmation_mismatch_is_on_confirm_field():
    sub = validate(
        PasswordChangeForm,
        {"currentPassword": "Passw0rd", "newPassword": "NewPass1", "confirmNewPassword": "NewPass2"},
    )
    assert sub.field_errors == {"confirmNewPassword": ["Passwords don't match"]}


def test_password_change_missing_fields():
    sub = validate(PasswordChangeForm, {"newPassword": "NewPass1"})
    assert sub.field_errors == {
        "currentPassword": ["Current password is required"],
        "confirmNewPassword": ["Please confirm your new password"],
    }


def test_password_change_empty_submission_uses_form_keys():
    sub = validate(PasswordChangeForm, {})
    assert sub.field_errors == {
        "currentPassword": ["Current password is required"],
        "newPassword": ["New password is required"],
        "confirmNewPassword": ["Please confirm your new password"],
    }


def test_profile_form_normalises_optional_fields():
    sub = validate(ProfileForm, {"name": " Alice ", "email": "alice@example.com", "image": "", "bio": ""})
    assert sub.ok
    assert sub.value.name == "Alice"
    assert sub.value.image is None
    assert sub.value.bio is None


def test_profile_form_limits():
    sub = validate(ProfileForm, {"name": "", "email": "alice@example.com", "bio": "x" * 1001})
    assert sub.field_errors == {
        "name": ["Name is required"],
        "bio": ["Bio must be less than 1000 characters"],
    }


def test_reply_never_echoes_secrets():
    sub = validate(SignInForm, {"email": "alice@example.com", "password": "short"})
    body = sub.reply()
    assert body["status"] == "error"
    assert body["initialValue"] == {"email": "alice@example.com"}
    assert "password" in body["fieldErrors"]


def test_with_errors_turns_success_into_error():
    sub = validate(SignInForm, {"email": "alice@example.com", "password": "Passw0rd"})
    failed = sub.with_errors({"email": ["Invalid email or password"]})
    assert sub.ok and not failed.ok
    assert failed.reply()["fieldErrors"] == {"email": ["Invalid email or password"]}
