"""
Database seeding: system templates, the admin account and the shared
direct-access workspace user.
"""

import logging
from typing import Optional

from models import db, DocumentTemplate, User
from services.drafting import SystemTemplateLoader, UserRole

logger = logging.getLogger(__name__)

WORKSPACE_USER_NAME = 'Workspace User'


def seed_system_templates() -> int:
    """
    Install loaded seed templates that are not in the database yet.

    Matching is by name among system templates, so re-running is safe and
    a deleted system template comes back on the next seed.

    Returns:
        Number of templates added
    """
    if not SystemTemplateLoader.is_loaded():
        SystemTemplateLoader.load_all()

    existing = {
        t.name for t in DocumentTemplate.query.filter_by(is_system_template=True).all()
    }

    added = 0
    for record in SystemTemplateLoader.all():
        if record.name in existing:
            continue
        row = DocumentTemplate(id=record.id)
        row.apply(record)
        db.session.add(row)
        added += 1

    if added:
        db.session.commit()
        logger.info(f"Seeded {added} system template(s)")
    return added


def ensure_admin(email: str, password: str, name: str = 'Administrator') -> User:
    """Create the admin account if no user with ``email`` exists."""
    user = User.query.filter_by(email=email).first()
    if user:
        return user

    user = User(email=email, name=name, role=UserRole.ADMIN.value)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    logger.info(f"Created admin user {email}")
    return user


def ensure_workspace_user(email: str) -> User:
    """
    The single user every request acts as in direct-access mode.

    It is an admin so the whole workspace is reachable without logging in.
    """
    user: Optional[User] = User.query.filter_by(email=email).first()
    if user:
        return user

    user = User(email=email, name=WORKSPACE_USER_NAME, role=UserRole.ADMIN.value)
    db.session.add(user)
    db.session.commit()
    logger.info(f"Created direct-access workspace user {email}")
    return user
