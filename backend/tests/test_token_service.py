from datetime import timedelta

import pytest
from jose import jwt

from gigmarket.config import settings
from gigmarket.models import TokenRecord, User
from gigmarket.utils.errors import AppError, ErrorKind
from gigmarket.utils.helpers import ensure_utc


def get_token_record(db, user_id):
    db.expire_all()
    return db.query(TokenRecord).filter(TokenRecord.user_id == user_id).first()


def test_issue_pair_signs_hs512_tokens(token_service, user):
    pair = token_service.issue_pair(user)

    assert jwt.get_unverified_header(pair.access_token)["alg"] == "HS512"
    access = jwt.decode(pair.access_token, settings.ACCESS_TOKEN_SECRET, algorithms=["HS512"])
    refresh = jwt.decode(pair.refresh_token, settings.REFRESH_TOKEN_SECRET, algorithms=["HS512"])
    assert access["id"] == user.id
    assert access["role"] == "customer"
    assert refresh["id"] == user.id
    assert access["exp"] - access["iat"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


def test_issue_pair_persists_refresh_record(token_service, db, user, clock):
    pair = token_service.issue_pair(user)

    record = get_token_record(db, user.id)
    assert record.token == pair.refresh_token
    assert record.blacklisted is False
    assert ensure_utc(record.expires) == clock.now + timedelta(days=7)


def test_issue_pair_overwrites_blacklisted_record(token_service, db, user):
    first = token_service.issue_pair(user)
    token_service.revoke(first.refresh_token, user.id)

    second = token_service.issue_pair(user)

    assert db.query(TokenRecord).count() == 1
    record = get_token_record(db, user.id)
    assert record.token == second.refresh_token
    assert record.blacklisted is False


def test_rotate_returns_fresh_pair(token_service, db, user):
    pair = token_service.issue_pair(user)

    rotated = token_service.rotate(pair.refresh_token)

    assert rotated.access_token != pair.access_token
    assert rotated.refresh_token != pair.refresh_token
    assert get_token_record(db, user.id).token == rotated.refresh_token


def test_rotate_invalidates_previous_refresh_token(token_service, user):
    pair = token_service.issue_pair(user)
    token_service.rotate(pair.refresh_token)

    with pytest.raises(AppError) as exc_info:
        token_service.rotate(pair.refresh_token)
    assert exc_info.value.kind == ErrorKind.UNAUTHORIZED


def test_rotate_after_revoke_is_unauthorized(token_service, user):
    pair = token_service.issue_pair(user)
    token_service.revoke(pair.refresh_token, user.id)

    with pytest.raises(AppError) as exc_info:
        token_service.rotate(pair.refresh_token)
    assert exc_info.value.kind == ErrorKind.UNAUTHORIZED
    assert exc_info.value.status_code == 401


def test_rotate_expired_record_is_unauthorized(token_service, user, clock):
    pair = token_service.issue_pair(user)
    clock.advance(days=7, seconds=1)

    with pytest.raises(AppError) as exc_info:
        token_service.rotate(pair.refresh_token)
    assert exc_info.value.kind == ErrorKind.UNAUTHORIZED


def test_rotate_unknown_token_is_unauthorized(token_service):
    with pytest.raises(AppError) as exc_info:
        token_service.rotate("not-a-stored-token")
    assert exc_info.value.kind == ErrorKind.UNAUTHORIZED


def test_rotate_with_badly_signed_token_is_forbidden(token_service, db, user):
    forged = jwt.encode({"id": user.id, "role": "admin"}, "wrong-secret", algorithm="HS512")
    db.add(TokenRecord(user_id=user.id, token=forged, expires=token_service.clock() + timedelta(days=1)))
    db.commit()

    with pytest.raises(AppError) as exc_info:
        token_service.rotate(forged)
    assert exc_info.value.kind == ErrorKind.FORBIDDEN
    assert exc_info.value.status_code == 403


def test_rotate_for_deleted_user_is_not_found(token_service, db, user):
    pair = token_service.issue_pair(user)
    # SQLite does not enforce the foreign key, so the token record survives
    db.execute(User.__table__.delete().where(User.__table__.c.id == user.id))
    db.commit()

    with pytest.raises(AppError) as exc_info:
        token_service.rotate(pair.refresh_token)
    assert exc_info.value.kind == ErrorKind.NOT_FOUND
    assert exc_info.value.status_code == 404


def test_revoke_requires_token(token_service, user):
    with pytest.raises(AppError) as exc_info:
        token_service.revoke(None, user.id)
    assert exc_info.value.kind == ErrorKind.BAD_REQUEST
    assert exc_info.value.status_code == 400


def test_revoke_unknown_user_is_not_found(token_service):
    with pytest.raises(AppError) as exc_info:
        token_service.revoke("some-token", 12345)
    assert exc_info.value.kind == ErrorKind.NOT_FOUND


def test_revoke_blacklists_record(token_service, db, user):
    pair = token_service.issue_pair(user)
    token_service.revoke(pair.refresh_token, user.id)

    record = get_token_record(db, user.id)
    assert record is not None
    assert record.blacklisted is True


def test_revoke_ignores_token_owned_by_another_user(token_service, db, user):
    other = User(phone_number="8888888888", role="customer")
    db.add(other)
    db.commit()
    db.refresh(other)
    pair = token_service.issue_pair(user)

    token_service.revoke(pair.refresh_token, other.id)

    db.expire_all()
    assert get_token_record(db, user.id).blacklisted is False
    assert token_service.rotate(pair.refresh_token).refresh_token != pair.refresh_token
