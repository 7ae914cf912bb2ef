"""
Initialize database tables and optionally promote an admin user

Usage:
    python init_db.py
    python init_db.py --admin 9999999999
"""
import argparse
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from gigmarket.database import SessionLocal, engine, Base
from gigmarket.models import User
from gigmarket.utils.validators import normalize_phone_number


def promote_admin(db, phone_number: str) -> User:
    """Create the user if needed and give it the admin role"""
    user = db.query(User).filter(User.phone_number == phone_number).first()
    if user is None:
        user = User(phone_number=phone_number, role="admin", status="active")
        db.add(user)
    else:
        user.role = "admin"
    db.commit()
    db.refresh(user)
    return user


def init_database(admin_phone: str = None):
    """Create tables and the optional admin user"""

    print("=" * 60)
    print("Gig Marketplace API - Database Initialization")
    print("=" * 60)

    print("\n📦 Creating database tables...")
    try:
        Base.metadata.create_all(bind=engine)
        print("✅ Database tables created successfully!")
    except Exception as e:
        print(f"❌ Error creating tables: {str(e)}")
        return 1

    if not admin_phone:
        return 0

    try:
        phone_number = normalize_phone_number(admin_phone)
    except ValueError as e:
        print(f"❌ {e}")
        return 1

    db = SessionLocal()
    try:
        user = promote_admin(db, phone_number)
        print(f"\n👤 User {user.id} ({user.phone_number}) now has the admin role")
        print("   Sign in through /api/v1/auth/send-otp with this number.\n")
    except Exception as e:
        print(f"\n❌ Error: {str(e)}")
        db.rollback()
        return 1
    finally:
        db.close()

    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Initialize the database")
    parser.add_argument("--admin", help="Phone number to create/promote as admin")
    args = parser.parse_args()
    sys.exit(init_database(args.admin))
