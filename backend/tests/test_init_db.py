from init_db import promote_admin

from gigmarket.models import User


def test_promote_admin_creates_user(db):
    user = promote_admin(db, "5555555555")

    assert user.role == "admin"
    assert db.query(User).count() == 1


def test_promote_admin_upgrades_existing_user(db, user):
    promoted = promote_admin(db, user.phone_number)

    assert promoted.id == user.id
    assert promoted.role == "admin"
