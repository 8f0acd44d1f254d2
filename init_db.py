import logging

from app import create_app
from models import db, DocumentTemplate, User
from services.seeding import ensure_admin, seed_system_templates

logger = logging.getLogger(__name__)


def init_db():
    app = create_app()
    with app.app_context():
        # Create all tables
        db.create_all()

        admin = ensure_admin(app.config['ADMIN_EMAIL'], app.config['ADMIN_PASSWORD'])
        added = seed_system_templates()

        logger.info(f"Admin account: {admin.email}")
        logger.info(f"System templates added: {added}")

        print("\nCurrent templates in database:")
        for template in DocumentTemplate.query.order_by(DocumentTemplate.category, DocumentTemplate.name).all():
            kind = 'system' if template.is_system_template else 'user'
            print(f"{template.category}: {template.name} ({kind})")
        print(f"\nUsers: {User.query.count()}")


if __name__ == '__main__':
    init_db()
