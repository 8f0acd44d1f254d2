import logging
from io import BytesIO

from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, send_file, url_for
from flask_login import login_required

from routes.drafting import store_workflow
from services.drafting import DraftingWorkflow, StoreError
from services.pdf_renderer import PageGeometry, PdfRenderError, render_pdf
from utils import doc_label, get_store, local_time

logger = logging.getLogger(__name__)

documents_bp = Blueprint('documents', __name__, url_prefix='/documents')


def get_resolution_or_404(resolution_id):
    record = get_store().find('resolutions', resolution_id)
    if record is None:
        abort(404)
    return record


@documents_bp.route('')
@login_required
def index():
    """Document vault, newest first. Searches company name and document label."""
    search_query = request.args.get('q', '').strip().lower()
    resolutions = get_store().get('resolutions')

    if search_query:
        resolutions = [
            r for r in resolutions
            if search_query in (r.company_details.company_name or '').lower()
            or search_query in doc_label(r).lower()
        ]

    return render_template(
        'documents/index.html',
        resolutions=resolutions,
        search_query=request.args.get('q', ''),
        doc_label=doc_label,
        local_time=local_time,
    )


@documents_bp.route('/<resolution_id>/edit')
@login_required
def edit(resolution_id):
    """Reopen a saved document at the preview step. Saving creates a new record."""
    record = get_resolution_or_404(resolution_id)
    store_workflow(DraftingWorkflow.from_resolution(record))
    return redirect(url_for('drafting.wizard'))


@documents_bp.route('/<resolution_id>/delete', methods=['POST'])
@login_required
def delete(resolution_id):
    try:
        deleted = get_store().delete('resolutions', resolution_id)
    except StoreError as e:
        flash(str(e), 'error')
        return redirect(url_for('documents.index'))

    flash('Document deleted.' if deleted else 'Document not found.', 'success' if deleted else 'error')
    return redirect(url_for('documents.index'))


@documents_bp.route('/<resolution_id>/pdf')
@login_required
def pdf(resolution_id):
    record = get_resolution_or_404(resolution_id)

    try:
        data = render_pdf(record.final_content, PageGeometry.from_config(current_app.config), title=doc_label(record))
    except PdfRenderError as e:
        flash(str(e), 'error')
        return redirect(url_for('documents.index'))

    name = (record.company_details.company_name or 'document').replace(' ', '_')
    filename = f"{name}_{doc_label(record).replace(' ', '_')}.pdf"
    return send_file(BytesIO(data), mimetype='application/pdf', as_attachment=True, download_name=filename)
