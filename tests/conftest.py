"""
Shared fixtures for the drafting workspace tests.

Run with: python -m pytest tests/ -v
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from app import create_app
from models import db, User
from services.drafting import (
    CompanyDetails,
    CustomField,
    CustomFieldType,
    DocCategory,
    MeetingType,
    TemplateRecord,
    UserRole,
    new_id,
)
from services.seeding import seed_system_templates


class FakeStore:
    """In-memory stand-in for services.store.Store."""

    def __init__(self):
        self.records = {'resolutions': {}, 'templates': {}, 'clients': {}, 'users': {}}
        self.puts = []

    def get(self, kind):
        return list(self.records[kind].values())

    def find(self, kind, record_id):
        return self.records[kind].get(record_id)

    def find_client_by_cin(self, cin):
        return next((c for c in self.records['clients'].values() if c.cin == cin), None)

    def put(self, kind, record):
        self.records[kind][record.id] = record
        self.puts.append(kind)
        return record

    def delete(self, kind, record_id):
        return self.records[kind].pop(record_id, None) is not None


def make_template(name='Bank Account Opening', category=DocCategory.RESOLUTION, draft_text=None,
                  labels=('Bank Name',), is_system=False, is_active=True):
    return TemplateRecord(
        id=new_id(),
        name=name,
        category=category,
        draft_text=draft_text if draft_text is not None else 'RESOLVED THAT an account be opened with {{Bank Name}}.',
        fields=[CustomField(id=new_id(), label=label, type=CustomFieldType.TEXT) for label in labels],
        is_system_template=is_system,
        is_active=is_active,
    )


@pytest.fixture
def company():
    return CompanyDetails(
        cin='U12345MH2020PTC000001',
        company_name='Acme Private Limited',
        address='12 Marine Drive, Mumbai',
        company_email='secretarial@acmeltd.in',
        meeting_date='2026-01-05',
        meeting_time='11:00',
        meeting_place='Registered Office',
        financial_year='2025-2026',
        meeting_type=MeetingType.BOARD,
        chairman_name='Ravi Kumar',
        chairman_din='01234567',
        directors_present='Ravi Kumar, Anita Shah',
    )


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def app():
    app = create_app('config.TestConfig')
    with app.app_context():
        db.create_all()
        seed_system_templates()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


def _create_user(app, email, name, role=UserRole.USER, password='password123'):
    with app.app_context():
        user = User(email=email, name=name, role=role.value)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user.id


@pytest.fixture
def user_id(app):
    return _create_user(app, 'drafter@example.com', 'Test Drafter')


@pytest.fixture
def admin_id(app):
    return _create_user(app, 'admin@example.com', 'Test Admin', role=UserRole.ADMIN)


def login(client, email, password='password123'):
    return client.post('/login', data={'email': email, 'password': password})


@pytest.fixture
def client(app, user_id):
    """Test client logged in as a regular user."""
    client = app.test_client()
    login(client, 'drafter@example.com')
    return client


@pytest.fixture
def admin_client(app, admin_id):
    client = app.test_client()
    login(client, 'admin@example.com')
    return client
