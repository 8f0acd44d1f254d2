"""
Route tests: authentication, the drafting wizard end to end, the vault,
the template builder, the client master and the admin panel.

Run with: python -m pytest tests/test_routes.py -v
"""

from io import BytesIO

import pytest

from app import create_app
from config import TestConfig
from models import db, ClientProfile, DocumentTemplate, DraftState, Resolution, User
from services.drafting import ConfigurationError, DraftingWorkflow, StoreError, WizardStep, client_sync
from services.store import Store

from conftest import login

COMPANY_FORM = {
    'company_name': 'Acme Private Limited',
    'cin': 'U12345MH2020PTC000001',
    'address': '12 Marine Drive, Mumbai',
    'company_email': 'secretarial@acmeltd.in',
    'meeting_type': 'Board Meeting',
    'meeting_date': '2026-01-05',
    'meeting_time': '11:00',
    'meeting_place': 'Registered Office',
    'financial_year': '2025-2026',
    'chairman_name': 'Ravi Kumar',
    'chairman_din': '01234567',
    'directors_present': 'Ravi Kumar, Anita Shah',
}


def current_workflow(app, user_id):
    with app.app_context():
        state = DraftState.get_for_user(user_id)
        return DraftingWorkflow.from_dict(state.state if state else None)


def draft_to_preview(client, app, user_id):
    """Drive a resignation letter through the wizard to the preview step."""
    client.get('/drafts/new?category=RESIGNATION')
    client.post('/drafts/action', data={'action': 'next', **COMPANY_FORM})

    workflow = current_workflow(app, user_id)
    item = workflow.items[0]
    values = {f'value-{item.id}-{i}': f'Value {i}' for i in range(len(item.fields))}
    client.post('/drafts/action', data={'action': 'next', **values})
    return current_workflow(app, user_id)


class TestAuth:

    def test_dashboard_requires_login(self, app):
        response = app.test_client().get('/')
        assert response.status_code == 302
        assert '/login' in response.headers['Location']

    def test_register_and_login(self, app):
        client = app.test_client()
        response = client.post('/register', data={
            'name': 'New Drafter',
            'email': 'New@Example.com',
            'password': 'password123',
            'confirm_password': 'password123',
        })
        assert response.status_code == 302

        with app.app_context():
            user = User.query.filter_by(email='new@example.com').first()
            assert user is not None
            assert not user.is_admin

        response = login(client, 'new@example.com')
        assert response.status_code == 302
        assert client.get('/').status_code == 200

    def test_duplicate_registration(self, app, user_id):
        response = app.test_client().post('/register', data={
            'name': 'Again',
            'email': 'drafter@example.com',
            'password': 'password123',
            'confirm_password': 'password123',
        })
        assert b'already exists' in response.data

    def test_wrong_password(self, app, user_id):
        response = login(app.test_client(), 'drafter@example.com', 'wrong')
        assert response.status_code == 200
        assert b'Invalid email or password' in response.data

    def test_deactivated_user_cannot_log_in(self, app, user_id):
        with app.app_context():
            db.session.get(User, user_id).active = False
            db.session.commit()

        response = login(app.test_client(), 'drafter@example.com')
        assert b'deactivated' in response.data

    def test_logout(self, client):
        client.get('/logout')
        assert client.get('/').status_code == 302


class TestWorkspaceMode:

    def test_direct_mode_needs_no_login(self):
        class DirectConfig(TestConfig):
            WORKSPACE_MODE = 'direct'

        app = create_app(DirectConfig)
        with app.app_context():
            db.create_all()

        response = app.test_client().get('/')
        assert response.status_code == 200
        assert b'Workspace User' in response.data

        with app.app_context():
            db.drop_all()

    def test_unknown_mode_rejected(self):
        class BadConfig(TestConfig):
            WORKSPACE_MODE = 'kiosk'

        with pytest.raises(ConfigurationError):
            create_app(BadConfig)


class TestDraftingWizard:

    def test_new_draft_with_category(self, app, client, user_id):
        client.get('/drafts/new?category=RESOLUTION')
        workflow = current_workflow(app, user_id)
        assert workflow.step == WizardStep.ENTITY_INFO

        assert client.get('/drafts/wizard').status_code == 200

    def test_simplified_document_attaches_seed_template(self, app, client, user_id):
        client.get('/drafts/new?category=RESIGNATION')
        client.post('/drafts/action', data={'action': 'next', **COMPANY_FORM})

        workflow = current_workflow(app, user_id)
        assert workflow.step == WizardStep.FIELD_ENTRY
        assert [i.template_name for i in workflow.items] == ['Standard Resignation Letter']
        assert workflow.company_details.company_name == 'Acme Private Limited'
        assert workflow.company_details.meeting_date == '2026-01-05'
        assert client.get('/drafts/wizard').status_code == 200

    def test_invalid_entity_form_stays_on_step(self, app, client, user_id):
        client.get('/drafts/new?category=DIR2')
        client.post('/drafts/action', data={'action': 'next', **COMPANY_FORM, 'company_email': 'not-an-email'})

        assert current_workflow(app, user_id).step == WizardStep.ENTITY_INFO

    def test_resolution_library_flow(self, app, client, user_id):
        with app.app_context():
            template = DocumentTemplate(
                name='Bank Account Opening',
                category='RESOLUTION',
                draft_text='RESOLVED THAT an account be opened with {{Bank Name}}.',
                fields=[{'id': 'f1', 'label': 'Bank Name', 'type': 'text', 'required': True}],
            )
            db.session.add(template)
            db.session.commit()
            template_id = template.id

        client.get('/drafts/new?category=RESOLUTION')
        client.post('/drafts/action', data={'action': 'next', **COMPANY_FORM})
        assert b'Bank Account Opening' in client.get('/drafts/wizard').data

        client.post('/drafts/action', data={'action': 'add_item', 'template_id': template_id})
        client.post('/drafts/action', data={'action': 'next'})
        item = current_workflow(app, user_id).items[0]
        client.post('/drafts/action', data={'action': 'next', f'value-{item.id}-0': 'HDFC Bank'})

        workflow = current_workflow(app, user_id)
        assert workflow.step == WizardStep.PREVIEW
        assert '<strong>HDFC Bank</strong>' in workflow.edited_content
        assert 'CERTIFIED TRUE COPY' in workflow.edited_content

        page = client.get('/drafts/wizard')
        assert b'HDFC Bank' in page.data

    def test_back_from_field_entry(self, app, client, user_id):
        client.get('/drafts/new?category=DIR2')
        client.post('/drafts/action', data={'action': 'next', **COMPANY_FORM})
        client.post('/drafts/action', data={'action': 'back'})

        assert current_workflow(app, user_id).step == WizardStep.ENTITY_INFO

    def test_save_document(self, app, client, user_id):
        workflow = draft_to_preview(client, app, user_id)
        assert workflow.step == WizardStep.PREVIEW

        response = client.post('/drafts/save', data={'content': '<p>Final letter</p><script>alert(1)</script>'})
        assert response.status_code == 302
        assert '/documents' in response.headers['Location']

        with app.app_context():
            resolution = Resolution.query.one()
            assert resolution.final_content.startswith('<p>Final letter</p>')
            assert '<script' not in resolution.final_content
            assert resolution.doc_type == 'RESIGNATION'
            assert ClientProfile.query.filter_by(cin='U12345MH2020PTC000001').count() == 1
            assert DraftState.get_for_user(user_id) is None

    def test_save_requires_preview(self, app, client, user_id):
        client.get('/drafts/new?category=DIR2')
        client.post('/drafts/save', data={'content': '<p>x</p>'})

        with app.app_context():
            assert Resolution.query.count() == 0

    def test_store_failure_keeps_draft_for_retry(self, app, client, user_id, monkeypatch):
        original_put = Store.put

        def failing_put(self, kind, record):
            if kind == 'resolutions':
                raise StoreError('database is locked', kind=kind)
            return original_put(self, kind, record)

        draft_to_preview(client, app, user_id)
        monkeypatch.setattr(Store, 'put', failing_put)

        response = client.post('/drafts/save', data={'content': '<p>Final</p>'}, follow_redirects=True)

        assert b'Could not save the document' in response.data
        assert current_workflow(app, user_id).step == WizardStep.PREVIEW
        with app.app_context():
            assert Resolution.query.count() == 0

        monkeypatch.undo()
        client.post('/drafts/save', data={'content': '<p>Final</p>'})

        with app.app_context():
            assert Resolution.query.count() == 1
            assert DraftState.get_for_user(user_id) is None

    def test_client_sync_failure_keeps_saved_document(self, app, client, user_id, monkeypatch):
        def failing_upsert(store, data):
            raise StoreError('database is locked', kind='clients')

        draft_to_preview(client, app, user_id)
        monkeypatch.setattr(client_sync, 'upsert_client_profile', failing_upsert)

        response = client.post('/drafts/save', data={'content': '<p>Final</p>'}, follow_redirects=True)

        assert b'Document saved, but the client master could not be updated' in response.data
        assert b'Could not save the document' not in response.data

        # A second save finds no draft at the preview step
        client.post('/drafts/save', data={'content': '<p>Final</p>'})

        with app.app_context():
            assert Resolution.query.count() == 1
            assert ClientProfile.query.count() == 0
            assert DraftState.get_for_user(user_id) is None

    def test_preview_pdf(self, app, client, user_id):
        draft_to_preview(client, app, user_id)
        response = client.post('/drafts/pdf', data={'content': '<p>Draft</p>'})

        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'
        assert response.data.startswith(b'%PDF')

    def test_new_draft_from_client(self, app, client, user_id):
        with app.app_context():
            profile = ClientProfile(cin='U99999DL2021PTC111111', company_name='Beta Ltd',
                                    address='Delhi', directors=[{'name': 'Meera Rao', 'din': '05556667'}])
            db.session.add(profile)
            db.session.commit()
            client_id = profile.id

        client.get(f'/drafts/new?client_id={client_id}')
        workflow = current_workflow(app, user_id)

        assert workflow.client_id == client_id
        assert workflow.company_details.cin == 'U99999DL2021PTC111111'
        assert workflow.header_footer.signatory_name == 'Meera Rao'


class TestDocumentVault:

    @pytest.fixture
    def saved_id(self, app, client, user_id):
        draft_to_preview(client, app, user_id)
        client.post('/drafts/save', data={'content': '<p>Final letter</p>'})
        with app.app_context():
            return Resolution.query.one().id

    def test_index_and_search(self, client, saved_id):
        assert b'Acme Private Limited' in client.get('/documents').data
        assert b'Acme Private Limited' in client.get('/documents?q=resignation').data
        assert b'No documents found' in client.get('/documents?q=zzz').data

    def test_download_pdf(self, client, saved_id):
        response = client.get(f'/documents/{saved_id}/pdf')
        assert response.status_code == 200
        assert response.data.startswith(b'%PDF')

    def test_edit_reopens_at_preview(self, app, client, user_id, saved_id):
        client.get(f'/documents/{saved_id}/edit')
        workflow = current_workflow(app, user_id)

        assert workflow.step == WizardStep.PREVIEW
        assert workflow.source_resolution_id == saved_id
        assert workflow.edited_content == '<p>Final letter</p>'

        client.post('/drafts/save', data={'content': '<p>Revised letter</p>'})
        with app.app_context():
            assert Resolution.query.count() == 2

    def test_other_user_cannot_see_document(self, app, saved_id):
        with app.app_context():
            other = User(email='other@example.com', name='Other')
            other.set_password('password123')
            db.session.add(other)
            db.session.commit()

        other_client = app.test_client()
        login(other_client, 'other@example.com')

        assert other_client.get(f'/documents/{saved_id}/pdf').status_code == 404

    def test_delete(self, app, client, saved_id):
        client.post(f'/documents/{saved_id}/delete')
        with app.app_context():
            assert Resolution.query.count() == 0

    def test_dashboard_counts(self, client, saved_id):
        response = client.get('/')
        assert response.status_code == 200
        assert b'Acme Private Limited' in response.data


class TestTemplateBuilder:

    def test_library_lists_seed_templates(self, client):
        response = client.get('/library?category=DIR2')
        assert b'Form DIR-2 Consent' in response.data
        assert b'Standard NOC Template' not in response.data

    def test_create_template(self, app, client, user_id):
        response = client.post('/library/new', data={
            'name': 'Bank Account Opening',
            'category': 'RESOLUTION',
            'draft_text': 'RESOLVED THAT an account be opened with {{Bank Name}}.',
            'field_label': ['Bank Name', ''],
            'field_type': ['text', 'text'],
            'field_required': ['0'],
            'is_system_template': 'y',
            'action': 'save',
        })
        assert response.status_code == 302

        with app.app_context():
            template = DocumentTemplate.query.filter_by(name='Bank Account Opening').one()
            assert template.user_id == user_id
            assert template.is_system_template is False
            assert [f['label'] for f in template.fields] == ['Bank Name']

    def test_duplicate_labels_rejected(self, app, client):
        response = client.post('/library/new', data={
            'name': 'Twice',
            'category': 'RESOLUTION',
            'draft_text': '{{Amount}}',
            'field_label': ['Amount', 'Amount'],
            'field_type': ['text', 'text'],
            'action': 'save',
        })
        assert response.status_code == 200
        assert b'Duplicate field labels' in response.data
        with app.app_context():
            assert DocumentTemplate.query.filter_by(name='Twice').count() == 0

    def test_system_variable_label_rejected(self, app, client):
        response = client.post('/library/new', data={
            'name': 'Shadow',
            'category': 'RESOLUTION',
            'draft_text': '{{CIN}}',
            'field_label': ['CIN'],
            'field_type': ['text'],
            'action': 'save',
        })
        assert b'is a system variable' in response.data

    def test_insert_field_token(self, client):
        response = client.post('/library/new', data={
            'name': 'Draft',
            'category': 'RESOLUTION',
            'draft_text': 'Paid to',
            'field_label': ['Payee'],
            'field_type': ['text'],
            'action': 'insert:0',
        })
        assert b'Paid to {{Payee}}' in response.data

    def test_insert_after_blank_row_targets_posted_row(self, client):
        response = client.post('/library/new', data={
            'name': 'Draft',
            'category': 'RESOLUTION',
            'draft_text': 'Paid to',
            'field_label': ['', 'Payee', 'Amount'],
            'field_type': ['text', 'text', 'currency'],
            'action': 'insert:2',
        })
        assert b'Paid to {{Amount}}' in response.data
        assert b'{{Payee}}' not in response.data.split(b'<textarea')[1]

    def test_unknown_field_type_falls_back_to_text(self, app, client):
        response = client.post('/library/new', data={
            'name': 'Tampered',
            'category': 'RESOLUTION',
            'draft_text': '{{Payee}}',
            'field_label': ['Payee'],
            'field_type': ['script'],
            'action': 'save',
        })
        assert response.status_code == 302

        with app.app_context():
            template = DocumentTemplate.query.filter_by(name='Tampered').one()
            assert template.fields[0]['type'] == 'text'

    def test_field_library_preset(self, client):
        response = client.post('/library/new', data={
            'name': 'Loan',
            'category': 'RESOLUTION',
            'draft_text': 'RESOLVED THAT',
            'field_label': ['Bank Name'],
            'field_type': ['text'],
            'action': 'preset:Amount',
        })
        page = response.data.decode()

        assert page.count('name="field_label"') == 2
        assert 'value="Amount"' in page
        assert '<option value="currency" selected>' in page

    def test_remove_field_row(self, client):
        response = client.post('/library/new', data={
            'name': 'Loan',
            'category': 'RESOLUTION',
            'draft_text': 'RESOLVED THAT',
            'field_label': ['Bank Name', 'Branch'],
            'field_type': ['text', 'text'],
            'action': 'remove:0',
        })
        page = response.data.decode()

        assert page.count('name="field_label"') == 1
        assert 'value="Branch"' in page
        assert 'value="Bank Name"' not in page

    def test_builder_blocked_without_permission(self, app, client, user_id):
        with app.app_context():
            db.session.get(User, user_id).can_create_template = False
            db.session.commit()

        response = client.get('/library/new')
        assert response.status_code == 302
        assert '/library' in response.headers['Location']


class TestClientMaster:

    def test_add_client(self, app, client):
        response = client.post('/clients/add', data={
            'company_name': 'Beta Ltd',
            'cin': 'U99999DL2021PTC111111',
            'address': 'Delhi',
            'company_email': '',
            'director_name': ['Meera Rao', ''],
            'director_din': ['05556667', ''],
        })
        assert response.status_code == 302

        with app.app_context():
            profile = ClientProfile.query.filter_by(cin='U99999DL2021PTC111111').one()
            assert profile.directors == [{'name': 'Meera Rao', 'din': '05556667'}]

    def test_invalid_cin_rejected(self, app, client):
        client.post('/clients/add', data={'company_name': 'Beta Ltd', 'cin': 'U999-99'})
        with app.app_context():
            assert ClientProfile.query.count() == 0

    def test_import_and_export(self, app, client):
        content = (
            'Company Name,CIN,Address,Email,"Directors (Format: Name1:DIN1, Name2:DIN2)"\n'
            'Acme Private Limited,U12345MH2020PTC000001,Mumbai,,"Ravi Kumar:01234567"\n'
            'Missing CIN,,,,\n'
        )
        response = client.post(
            '/clients/import',
            data={'csv_file': (BytesIO(content.encode('utf-8')), 'clients.csv')},
            content_type='multipart/form-data',
        )
        assert response.status_code == 302

        with app.app_context():
            assert ClientProfile.query.count() == 1

        exported = client.get('/clients/export.csv')
        assert exported.mimetype == 'text/csv'
        assert b'U12345MH2020PTC000001' in exported.data
        assert b'Ravi Kumar:01234567' in exported.data

    def test_sample_csv(self, client):
        response = client.get('/clients/sample.csv')
        assert response.data.startswith(b'Company Name,CIN')

    def test_index_search(self, app, client):
        with app.app_context():
            db.session.add(ClientProfile(cin='AAA111', company_name='Gamma LLP'))
            db.session.commit()

        assert b'Gamma LLP' in client.get('/clients?q=aaa').data
        assert b'No clients yet' in client.get('/clients?q=zzz').data


class TestAdminPanel:

    def test_requires_admin(self, client):
        response = client.get('/admin')
        assert response.status_code == 302

    def test_lists_users(self, admin_client, user_id):
        response = admin_client.get('/admin')
        assert response.status_code == 200
        assert b'drafter@example.com' in response.data

    def test_toggle_status_logs_user_out(self, app, admin_client, client, user_id):
        admin_client.post(f'/admin/users/{user_id}/toggle-status')

        with app.app_context():
            assert db.session.get(User, user_id).active is False
        assert client.get('/').status_code == 302

    def test_toggle_permission(self, app, admin_client, user_id):
        admin_client.post(f'/admin/users/{user_id}/toggle-permission')
        with app.app_context():
            assert db.session.get(User, user_id).can_create_template is False

    def test_admins_cannot_be_toggled(self, app, admin_client, admin_id):
        admin_client.post(f'/admin/users/{admin_id}/toggle-status')
        with app.app_context():
            assert db.session.get(User, admin_id).active is True

    def test_delete_template(self, app, admin_client):
        with app.app_context():
            template_id = DocumentTemplate.query.filter_by(name='Standard NOC Template').one().id

        admin_client.post(f'/admin/templates/{template_id}/delete')

        with app.app_context():
            assert db.session.get(DocumentTemplate, template_id) is None
