from .auth import auth_bp
from .main import main_bp
from .drafting import drafting_bp
from .documents import documents_bp
from .library import library_bp
from .clients import clients_bp
from .admin import admin_bp

def register_blueprints(app):
    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(drafting_bp)
    app.register_blueprint(documents_bp)
    app.register_blueprint(library_bp)
    app.register_blueprint(clients_bp)
    app.register_blueprint(admin_bp)
