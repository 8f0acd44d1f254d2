import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


class Config:
    # Environment
    FLASK_ENV = os.getenv('FLASK_ENV', 'development')

    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///drafting.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    PERMANENT_SESSION_LIFETIME = timedelta(minutes=int(os.getenv('SESSION_MINUTES', 30)))

    # Workspace: 'login' for accounts, 'direct' for a single shared workspace
    WORKSPACE_MODE = os.getenv('WORKSPACE_MODE', 'login').lower()
    DEFAULT_WORKSPACE_EMAIL = os.getenv('DEFAULT_WORKSPACE_EMAIL', 'workspace@localhost')
    ADMIN_EMAIL = os.getenv('ADMIN_EMAIL', 'admin@localhost')
    ADMIN_PASSWORD = os.getenv('ADMIN_PASSWORD', 'admin123')

    # PDF export
    PDF_PAGE_SIZE = os.getenv('PDF_PAGE_SIZE', 'A4')
    PDF_MARGIN = float(os.getenv('PDF_MARGIN', 40))

    # Client CSV import
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_UPLOAD_BYTES', 2 * 1024 * 1024))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    WORKSPACE_MODE = 'login'
    LOG_LEVEL = 'WARNING'
