"""Operator commands for the marketing calendar.

    python manage.py create-user ana@example.com s3cret --role admin
    python manage.py rehash-passwords
"""

import argparse
import logging
import sys

from sqlalchemy.exc import IntegrityError

from database import Base, SessionLocal, engine
from dependencies import get_password_hash, pwd_context
from models import User

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def create_user(db, email, password, role="editor", active=True):
    user = User(email=email, password=get_password_hash(password), role=role, active=active)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError(f"User {email} already exists")
    db.refresh(user)
    return user


def rehash_passwords(db):
    """Replace every stored plaintext password with its bcrypt hash. Returns the count."""
    count = 0
    for user in db.query(User).all():
        if pwd_context.identify(user.password) == "plaintext":
            user.password = get_password_hash(user.password)
            count += 1
    db.commit()
    return count


def main(argv=None):
    parser = argparse.ArgumentParser(description="Marketing calendar administration")
    sub = parser.add_subparsers(dest="command", required=True)

    p_create = sub.add_parser("create-user", help="Create a user with a hashed password")
    p_create.add_argument("email")
    p_create.add_argument("password")
    p_create.add_argument("--role", default="editor")
    p_create.add_argument("--inactive", action="store_true")

    sub.add_parser("rehash-passwords", help="Hash legacy plaintext passwords")

    args = parser.parse_args(argv)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if args.command == "create-user":
            try:
                user = create_user(db, args.email, args.password, args.role, not args.inactive)
            except ValueError as e:
                logger.error(str(e))
                return 1
            logger.info(f"Created user {user.id} <{user.email}> with role {user.role}")
        elif args.command == "rehash-passwords":
            logger.info(f"Rehashed {rehash_passwords(db)} password(s)")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
