"""
Store and seeding tests against an in-memory SQLite database.

Run with: python -m pytest tests/test_store.py -v
"""

import pytest
from sqlalchemy.exc import OperationalError

from models import db, ClientProfile, DocumentTemplate, User
from services.drafting import (
    DocCategory,
    DraftingWorkflow,
    FromMeeting,
    StoreError,
    SystemTemplateLoader,
    WorkspaceSession,
    save_resolution,
    upsert_client_profile,
)
from services.seeding import ensure_admin, ensure_workspace_user, seed_system_templates
from services.store import Store

from conftest import make_template


def committed_record(user_id, company):
    workflow = DraftingWorkflow(company_details=company)
    workflow.select_category(DocCategory.DIR2)
    workflow.next()
    workflow.next()
    return workflow.commit(user_id, '<p>Consent</p>')


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield


class TestTemplates:

    def test_put_and_find(self, ctx, user_id):
        store = Store(WorkspaceSession(user_id))
        template = make_template()
        template.user_id = user_id

        saved = store.put('templates', template)

        assert saved.created_at is not None
        found = store.find('templates', template.id)
        assert found.name == 'Bank Account Opening'
        assert found.labels == ['Bank Name']
        assert found.fields[0].id == template.fields[0].id

    def test_get_includes_seeded_templates(self, ctx):
        names = {t.name for t in Store().get('templates')}
        assert {t.name for t in SystemTemplateLoader.all()} <= names

    def test_delete(self, ctx):
        store = Store()
        template = store.put('templates', make_template())

        assert store.delete('templates', template.id) is True
        assert store.delete('templates', template.id) is False
        assert store.find('templates', template.id) is None


class TestResolutions:

    def test_resolutions_private_to_owner(self, ctx, user_id, admin_id, company):
        other = User(email='other@example.com', name='Other')
        db.session.add(other)
        db.session.commit()

        Store(WorkspaceSession(user_id)).put('resolutions', committed_record(user_id, company))
        Store(WorkspaceSession(other.id)).put('resolutions', committed_record(other.id, company))

        mine = Store(WorkspaceSession(user_id)).get('resolutions')
        assert [r.user_id for r in mine] == [user_id]

        everything = Store(WorkspaceSession(admin_id, is_admin=True)).get('resolutions')
        assert len(everything) == 2

    def test_other_users_document_cannot_be_deleted(self, ctx, user_id, admin_id, company):
        record = Store(WorkspaceSession(admin_id, is_admin=True)).put(
            'resolutions', committed_record(admin_id, company))

        assert Store(WorkspaceSession(user_id)).delete('resolutions', record.id) is False

    def test_round_trip(self, ctx, user_id, company):
        store = Store(WorkspaceSession(user_id))
        record = committed_record(user_id, company)

        saved = store.put('resolutions', record)

        assert saved.final_content == '<p>Consent</p>'
        assert saved.doc_type == DocCategory.DIR2
        assert saved.company_details == company
        assert saved.created_at is not None

    def test_save_resolution_syncs_client(self, ctx, user_id, company):
        store = Store(WorkspaceSession(user_id))
        save_resolution(store, committed_record(user_id, company))
        save_resolution(store, committed_record(user_id, company))

        clients = store.get('clients')
        assert len(clients) == 1
        assert clients[0].cin == company.cin
        assert len(store.get('resolutions')) == 2


class TestClients:

    def test_upsert_by_cin(self, ctx, company):
        store = Store()
        first = upsert_client_profile(store, FromMeeting(company))
        company.address = 'New Address'
        second = upsert_client_profile(store, FromMeeting(company))

        assert second.id == first.id
        assert store.find_client_by_cin(company.cin).address == 'New Address'

    def test_lookup_by_cin_database_error(self, ctx, monkeypatch):
        class BrokenQuery:
            def filter_by(self, **kwargs):
                raise OperationalError('SELECT', {}, Exception('disk I/O error'))

        monkeypatch.setattr(ClientProfile, 'query', BrokenQuery())

        with pytest.raises(StoreError) as exc_info:
            Store().find_client_by_cin('U12345MH2020PTC000001')
        assert exc_info.value.kind == 'clients'


class TestUsers:

    def test_users_cannot_be_created_through_store(self, ctx, user_id):
        record = Store().find('users', user_id)
        record.id = 'new-user'
        with pytest.raises(StoreError):
            Store().put('users', record)

    def test_update_user_flags(self, ctx, user_id):
        store = Store()
        record = store.find('users', user_id)
        record.is_active = False
        record.can_create_template = False

        store.put('users', record)

        user = db.session.get(User, user_id)
        assert user.active is False
        assert user.can_create_template is False

    def test_unknown_kind(self, ctx):
        with pytest.raises(StoreError):
            Store().get('invoices')


class TestSeeding:

    def test_seed_is_idempotent(self, ctx):
        assert seed_system_templates() == 0
        assert DocumentTemplate.query.filter_by(is_system_template=True).count() == len(SystemTemplateLoader.all())

    def test_deleted_system_template_comes_back(self, ctx):
        row = DocumentTemplate.query.filter_by(name='Standard NOC Template').first()
        db.session.delete(row)
        db.session.commit()

        assert seed_system_templates() == 1

    def test_ensure_admin(self, ctx):
        admin = ensure_admin('root@example.com', 'secret123')
        assert admin.is_admin
        assert admin.check_password('secret123')
        assert ensure_admin('root@example.com', 'other').id == admin.id

    def test_workspace_user_is_admin(self, ctx):
        user = ensure_workspace_user('workspace@localhost')
        assert user.is_admin
        assert ensure_workspace_user('workspace@localhost').id == user.id
