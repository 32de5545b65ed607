from inkwell.auth import session as sessions
from inkwell.auth.session import Identity, Session
from inkwell.services.profile_service import get_profile, update_profile
from inkwell.services.results import Failure

from conftest import cookie_value, fake_request

FORM = {"name": "Alice Liddell", "email": "alice@wonderland.org", "image": "https://img.example/a.png", "bio": "Curiouser"}


def _session_for(user):
    s = Session()
    s.set(Identity.from_user(user))
    return s


def test_get_profile(db, alice):
    p = get_profile(db, alice.id)
    assert p.name == "Alice"
    assert p.email == "alice@example.com"
    assert p.bio == "Hi, I'm Alice"
    assert get_profile(db, "missing") is None


def test_update_profile_persists_and_refreshes_session(db, session_factory, alice):
    sess = _session_for(alice)
    result = update_profile(db, session=sess, user_id=alice.id, data=FORM)

    assert result.ok
    assert result.identity.email == "alice@wonderland.org"
    assert sess.identity.name == "Alice Liddell"

    restored = sessions.read(fake_request({"inkwell_session": cookie_value(result.set_cookie)}))
    assert restored.identity == result.identity
    assert restored.identity.image == "https://img.example/a.png"
    assert restored.identity.role == "USER"

    fresh = session_factory()
    try:
        p = get_profile(fresh, alice.id)
    finally:
        fresh.close()
    assert (p.name, p.email, p.bio) == ("Alice Liddell", "alice@wonderland.org", "Curiouser")


def test_update_other_users_profile_rejected_even_with_bad_payload(db, alice, bob):
    sess = _session_for(bob)
    for data in (FORM, {"name": "", "email": "nope"}):
        result = update_profile(db, session=sess, user_id=alice.id, data=data)
        assert result.failure is Failure.AUTHORIZATION
        assert result.submission.field_errors["userId"] == ["You can only update your own profile"]
        assert result.set_cookie is None
    assert get_profile(db, alice.id).name == "Alice"


def test_update_profile_requires_sign_in(db, alice):
    result = update_profile(db, session=Session(), user_id=alice.id, data=FORM)
    assert result.failure is Failure.AUTHENTICATION
    assert result.status_code == 401


def test_update_profile_validation_errors(db, alice):
    result = update_profile(db, session=_session_for(alice), user_id=alice.id, data={"name": "", "email": "bad"})
    assert result.failure is Failure.VALIDATION
    assert set(result.submission.field_errors) == {"name", "email"}


def test_update_profile_email_taken(db, alice, bob):
    data = dict(FORM, email="bob@example.com")
    result = update_profile(db, session=_session_for(alice), user_id=alice.id, data=data)
    assert result.failure is Failure.VALIDATION
    assert result.submission.field_errors == {"email": ["Email is already in use"]}


def test_update_profile_keeps_own_email(db, alice):
    data = dict(FORM, email="alice@example.com")
    result = update_profile(db, session=_session_for(alice), user_id=alice.id, data=data)
    assert result.ok
