import logging
from io import BytesIO

from flask import Blueprint, current_app, flash, redirect, render_template, request, send_file, url_for
from flask_login import current_user, login_required

from forms import CompanyDetailsForm, HeaderFooterForm
from models import db, DraftState
from services.drafting import (
    ClientSyncError,
    DocCategory,
    DocSubType,
    DraftingWorkflow,
    StoreError,
    WizardStep,
    WorkflowError,
    save_resolution,
)
from services.drafting.formatting import parse_date
from services.drafting.workflow import STEP_TITLES, WIZARD_CATEGORIES
from services.html_sanitizer import sanitize_document_html
from services.pdf_renderer import PageGeometry, PdfRenderError, render_pdf
from utils import current_workspace, get_store

logger = logging.getLogger(__name__)

drafting_bp = Blueprint('drafting', __name__, url_prefix='/drafts')

SUB_TYPE_CHOICES = [
    (DocSubType.SPECIMEN_SIGNATURE, 'Specimen Signature Card'),
    (DocSubType.INC_NOC, 'NOC for Registered Office'),
    (DocSubType.GENERAL, 'Other Incorporation Documents'),
]


# ----------------------------------------------------------------------
# Wizard state persistence
# ----------------------------------------------------------------------

def load_workflow() -> DraftingWorkflow:
    state = DraftState.get_for_user(current_user.id)
    return DraftingWorkflow.from_dict(state.state if state else None)


def store_workflow(workflow: DraftingWorkflow) -> None:
    state = DraftState.get_for_user(current_user.id)
    if state is None:
        state = DraftState(user_id=current_user.id, state={})
        db.session.add(state)
    state.state = workflow.to_dict()
    db.session.commit()


def clear_workflow() -> None:
    state = DraftState.get_for_user(current_user.id)
    if state is not None:
        db.session.delete(state)
        db.session.commit()


# ----------------------------------------------------------------------
# Form data -> workflow
# ----------------------------------------------------------------------

def apply_company_form(workflow: DraftingWorkflow) -> bool:
    form = CompanyDetailsForm()
    if not form.validate():
        for field_name, errors in form.errors.items():
            flash(f"{getattr(form, field_name).label.text}: {'; '.join(errors)}", 'error')
        return False

    changes = {name: field.data for name, field in form._fields.items() if name != 'csrf_token'}
    changes['meeting_date'] = form.meeting_date.data.isoformat() if form.meeting_date.data else ''
    workflow.update_company(**{k: (v or '') for k, v in changes.items()})
    return True


def apply_header_form(workflow: DraftingWorkflow) -> bool:
    form = HeaderFooterForm()
    if not form.validate():
        flash('Please check the header fields.', 'error')
        return False
    workflow.update_header(
        show_header=bool(form.show_header.data),
        header_title=form.header_title.data or '',
        header_subtitle=form.header_subtitle.data or '',
        signatory_name=form.signatory_name.data or '',
        signatory_designation=form.signatory_designation.data or '',
        signatory_din=form.signatory_din.data or '',
    )
    return True


def apply_values(workflow: DraftingWorkflow) -> None:
    """Field inputs are named value-<item id>-<field index>."""
    for item in workflow.items:
        for index, custom_field in enumerate(item.fields):
            key = f'value-{item.id}-{index}'
            if key in request.form:
                workflow.set_value(item.id, custom_field.label, request.form[key].strip())


def apply_step_form(workflow: DraftingWorkflow) -> bool:
    """Save whatever the current step's form posted. False if it did not validate."""
    if workflow.step == WizardStep.ENTITY_INFO and 'company_name' in request.form:
        return apply_company_form(workflow)
    if workflow.step == WizardStep.HEADER_CONFIG and 'header_title' in request.form:
        return apply_header_form(workflow)
    if workflow.step == WizardStep.FIELD_ENTRY:
        apply_values(workflow)
    return True


# ----------------------------------------------------------------------
# Routes
# ----------------------------------------------------------------------

@drafting_bp.route('/new')
@login_required
def new_draft():
    """Start a fresh draft, optionally pre-filled from a client profile."""
    workflow = DraftingWorkflow()

    client_id = request.args.get('client_id')
    if client_id:
        client = get_store().find('clients', client_id)
        if client is None:
            flash('Client profile not found.', 'error')
        else:
            workflow.load_client(client)

    category = request.args.get('category')
    if category:
        try:
            workflow.select_category(DocCategory(category))
        except (ValueError, WorkflowError) as e:
            flash(str(e), 'error')

    store_workflow(workflow)
    return redirect(url_for('drafting.wizard'))


@drafting_bp.route('/wizard')
@login_required
def wizard():
    workflow = load_workflow()
    store = get_store()
    details = workflow.company_details

    company_form = CompanyDetailsForm(formdata=None, data={
        **details.to_dict(),
        'meeting_type': details.meeting_type.value,
        'meeting_date': parse_date(details.meeting_date),
    })
    header_form = HeaderFooterForm(formdata=None, data=workflow.header_footer.to_dict())

    library = []
    if workflow.step == WizardStep.TEMPLATE_LIBRARY:
        library = [t for t in store.get('templates') if t.is_active and t.category == workflow.category]

    clients = store.get('clients') if workflow.step == WizardStep.ENTITY_INFO else []

    return render_template(
        'drafting/wizard.html',
        workflow=workflow,
        steps=[(s, STEP_TITLES[s]) for s in workflow.visible_steps()],
        categories=WIZARD_CATEGORIES,
        sub_types=SUB_TYPE_CHOICES,
        company_form=company_form,
        header_form=header_form,
        library=library,
        clients=clients,
        preview_html=sanitize_document_html(workflow.edited_content),
    )


@drafting_bp.route('/action', methods=['POST'])
@login_required
def action():
    """
    Single endpoint for wizard interactions. The current step's form data is
    saved first, then ``action`` is performed.
    """
    workflow = load_workflow()
    name = request.form.get('action', '')

    try:
        if not apply_step_form(workflow):
            store_workflow(workflow)
            return redirect(url_for('drafting.wizard'))

        if name == 'next':
            templates = get_store().get('templates') if workflow.is_simplified else ()
            workflow.next(templates)
            if workflow.step == WizardStep.FIELD_ENTRY and not workflow.items:
                flash('No template is attached; the document will be empty.', 'warning')
        elif name == 'back':
            workflow.back()
        elif name == 'select_category':
            workflow.select_category(DocCategory(request.form['category']))
        elif name == 'select_sub_type':
            workflow.select_sub_type(DocSubType(request.form['sub_type']))
        elif name == 'reset_category':
            workflow.reset_category()
        elif name == 'add_item':
            template = get_store().find('templates', request.form.get('template_id', ''))
            if template is None:
                flash('Template not found.', 'error')
            else:
                workflow.add_item(template)
        elif name == 'remove_item':
            workflow.remove_item(request.form.get('item_id', ''))
        elif name == 'load_client':
            client = get_store().find('clients', request.form.get('client_id', ''))
            if client is None:
                flash('Client profile not found.', 'error')
            else:
                workflow.load_client(client)
                flash(f'Loaded details for {client.company_name}.', 'success')
        elif name == 'regenerate':
            workflow.edited_content = workflow.assemble().html
        elif name != 'save_step':
            flash(f'Unknown action: {name}', 'error')
    except WorkflowError as e:
        flash(str(e), 'error')
    except (KeyError, ValueError) as e:
        logger.warning(f"Bad wizard action {name!r}: {e}")
        flash('Invalid selection.', 'error')

    store_workflow(workflow)
    return redirect(url_for('drafting.wizard'))


@drafting_bp.route('/save', methods=['POST'])
@login_required
def save():
    workflow = load_workflow()
    session = current_workspace()
    edited_html = sanitize_document_html(request.form.get('content', workflow.edited_content))

    try:
        record = workflow.commit(session.user_id, edited_html)
        saved = save_resolution(get_store(), record)
    except WorkflowError as e:
        flash(str(e), 'error')
        return redirect(url_for('drafting.wizard'))
    except ClientSyncError as e:
        # Document is stored; only the client master is stale
        clear_workflow()
        flash('Document saved, but the client master could not be updated.', 'warning')
        logger.warning(f"Client sync failed after saving {e.record.id}")
        return redirect(url_for('documents.index'))
    except StoreError as e:
        # Keep the draft so the user can retry
        store_workflow(workflow)
        flash(f'Could not save the document: {e}', 'error')
        return redirect(url_for('drafting.wizard'))

    clear_workflow()
    flash(f'Document saved for {saved.company_details.company_name or "unnamed company"}.', 'success')
    return redirect(url_for('documents.index'))


@drafting_bp.route('/pdf', methods=['POST'])
@login_required
def pdf():
    """Download the current preview, including unsaved edits, as a PDF."""
    workflow = load_workflow()
    html = sanitize_document_html(request.form.get('content', workflow.edited_content))

    try:
        data = render_pdf(html, PageGeometry.from_config(current_app.config))
    except PdfRenderError as e:
        flash(str(e), 'error')
        return redirect(url_for('drafting.wizard'))

    filename = f"{workflow.company_details.company_name or 'document'}.pdf".replace(' ', '_')
    return send_file(BytesIO(data), mimetype='application/pdf', as_attachment=True, download_name=filename)
