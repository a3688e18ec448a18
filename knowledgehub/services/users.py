"""
Users service for KnowledgeHub.
Authors are created by the seed command; there is no public registration.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from knowledgehub.db.models import User
from knowledgehub.services.errors import integrity_guard

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: str) -> Optional[User]:
    """Get a user by ID."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """Get a user by email. Emails are stored lowercased."""
    return db.query(User).filter(User.email == email.strip().lower()).first()


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.created_at).all()


def create_user(
    db: Session,
    email: str,
    name: Optional[str],
    password: str,
    role: str = "admin"
) -> User:
    """Create a user. Raises ConflictError if the email is taken."""
    user = User(
        email=email.strip().lower(),
        name=name or None,
        password=generate_password_hash(password),
        role=role
    )

    with integrity_guard(db):
        db.add(user)
        db.commit()
    db.refresh(user)

    logger.info(f"Created user {user.email}")
    return user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Return the user when email and password match, otherwise None."""
    user = get_user_by_email(db, email)
    if not user or not check_password_hash(user.password, password):
        return None
    return user


def delete_user(db: Session, user_id: str) -> bool:
    """Delete a user. Their posts and the posts' associations go with them."""
    deleted = db.query(User).filter(User.id == user_id).delete(synchronize_session=False)
    db.commit()
    if deleted:
        logger.info(f"Deleted user {user_id}")
    return bool(deleted)
