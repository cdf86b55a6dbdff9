import warnings
from types import SimpleNamespace

import pytest

import manage
from database import require_database_url
from dependencies import get_password_hash, pwd_context
from models import User
from schemas import Event as EventSchema, SessionUser


def test_create_user_stores_bcrypt_hash(db):
    user = manage.create_user(db, "ana@example.com", "s3cret", role="admin")

    assert user.id is not None
    assert user.role == "admin"
    assert user.active is True
    assert pwd_context.identify(user.password) == "bcrypt"
    assert pwd_context.verify("s3cret", user.password)


def test_create_user_rejects_duplicate_email(db):
    manage.create_user(db, "ana@example.com", "s3cret")

    with pytest.raises(ValueError):
        manage.create_user(db, "ana@example.com", "other")


def test_rehash_passwords_only_touches_plaintext(db, make_user):
    make_user("legacy@example.com", "plain-pass", hashed=False)
    hashed = make_user("modern@example.com", "hashed-pass")
    original_hash = hashed.password

    assert manage.rehash_passwords(db) == 1

    db.expire_all()
    legacy = db.query(User).filter(User.email == "legacy@example.com").one()
    assert pwd_context.identify(legacy.password) == "bcrypt"
    assert pwd_context.verify("plain-pass", legacy.password)
    modern = db.query(User).filter(User.email == "modern@example.com").one()
    assert modern.password == original_hash


def test_main_create_user_command(db, monkeypatch):
    monkeypatch.setattr(manage, "SessionLocal", lambda: db)

    assert manage.main(["create-user", "bo@example.com", "pw", "--role", "editor", "--inactive"]) == 0

    user = db.query(User).filter(User.email == "bo@example.com").one()
    assert user.active is False


def test_require_database_url_exits_when_missing():
    with pytest.raises(SystemExit) as excinfo:
        require_database_url(SimpleNamespace(DATABASE_URL=None))

    assert excinfo.value.code == 1


def test_require_database_url_returns_url():
    assert require_database_url(SimpleNamespace(DATABASE_URL="sqlite://")) == "sqlite://"


def test_password_hash_uses_default_scheme_without_deprecation():
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        hashed = get_password_hash("s3cret")

    assert pwd_context.identify(hashed) == "bcrypt"
    assert not [w for w in caught if issubclass(w.category, DeprecationWarning) and "scheme" in str(w.message)]


def test_response_schemas_read_orm_attributes():
    assert SessionUser.model_config["from_attributes"] is True
    assert EventSchema.model_config["from_attributes"] is True
