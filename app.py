import logging

from flask import Flask
from flask_login import LoginManager, current_user, login_user
from flask_migrate import Migrate
from flask_wtf.csrf import CSRFProtect

from models import db, User
from routes import register_blueprints
from services.drafting import ConfigurationError, SystemTemplateLoader
from services.drafting.session import DIRECT_MODE, WORKSPACE_MODES

logger = logging.getLogger(__name__)


def create_app(config_object='config.Config'):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    mode = app.config.get('WORKSPACE_MODE', 'login')
    if mode not in WORKSPACE_MODES:
        raise ConfigurationError(f"WORKSPACE_MODE must be one of {WORKSPACE_MODES}, got {mode!r}")

    # Initialize extensions
    db.init_app(app)
    Migrate(app, db)
    CSRFProtect(app)

    login_manager = LoginManager()
    login_manager.init_app(app)
    login_manager.login_view = 'auth.login'

    @login_manager.user_loader
    def load_user(user_id):
        user = db.session.get(User, user_id)
        # Deactivated accounts lose their session on the next request
        return user if user and user.active else None

    # Fail fast on broken seed templates
    SystemTemplateLoader.load_all()

    register_blueprints(app)

    if mode == DIRECT_MODE:
        from services.seeding import ensure_workspace_user

        @app.before_request
        def act_as_workspace_user():
            if not current_user.is_authenticated:
                login_user(ensure_workspace_user(app.config['DEFAULT_WORKSPACE_EMAIL']))

    logger.info(f"Drafting workspace started in {mode} mode")
    return app


app = create_app()

if __name__ == '__main__':
    from services.seeding import seed_system_templates

    with app.app_context():
        db.create_all()
        seed_system_templates()
    app.run(host='0.0.0.0', port=5005, debug=True)
