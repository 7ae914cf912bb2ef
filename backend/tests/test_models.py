import pytest
from sqlalchemy.exc import IntegrityError

from gigmarket.models import USER_ROLES, User


@pytest.mark.parametrize("role", USER_ROLES)
def test_known_roles_are_accepted(db, role):
    db.add(User(phone_number="7777777777", role=role))
    db.commit()

    assert db.query(User).filter(User.role == role).count() == 1


def test_unknown_role_is_rejected(db):
    db.add(User(phone_number="7777777777", role="superuser"))

    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()
