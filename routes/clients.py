import logging

from flask import Blueprint, Response, flash, redirect, render_template, request, url_for
from flask_login import login_required

from forms import ClientImportForm, ClientProfileForm
from services.client_import import export_clients_csv, import_clients, sample_csv
from services.drafting import (
    DirectorInfo,
    FromProfileForm,
    PartialClientProfile,
    StoreError,
    upsert_client_profile,
)
from utils import get_store

logger = logging.getLogger(__name__)

clients_bp = Blueprint('clients', __name__, url_prefix='/clients')


def directors_from_request():
    """Director rows arrive as parallel director_name / director_din lists."""
    names = request.form.getlist('director_name')
    dins = request.form.getlist('director_din')
    return [
        DirectorInfo(name=name.strip(), din=(dins[i].strip() if i < len(dins) else ''))
        for i, name in enumerate(names)
        if name.strip()
    ]


@clients_bp.route('')
@login_required
def index():
    search_query = request.args.get('q', '').strip().lower()
    store = get_store()
    clients = store.get('clients')

    if search_query:
        clients = [
            c for c in clients
            if search_query in c.company_name.lower() or search_query in c.cin.lower()
        ]

    # Documents per client, matched on CIN
    counts = {}
    for resolution in store.get('resolutions'):
        cin = resolution.company_details.cin
        counts[cin] = counts.get(cin, 0) + 1

    return render_template(
        'clients/index.html',
        clients=clients,
        document_counts=counts,
        search_query=request.args.get('q', ''),
        form=ClientProfileForm(formdata=None),
        import_form=ClientImportForm(formdata=None),
    )


@clients_bp.route('/add', methods=['POST'])
@login_required
def add():
    form = ClientProfileForm()
    if not form.validate_on_submit():
        for field_name, errors in form.errors.items():
            flash(f"{getattr(form, field_name).label.text}: {'; '.join(errors)}", 'error')
        return redirect(url_for('clients.index'))

    profile = PartialClientProfile(
        cin=form.cin.data.strip(),
        company_name=form.company_name.data.strip(),
        address=(form.address.data or '').strip(),
        company_email=(form.company_email.data or '').strip(),
        directors=directors_from_request(),
    )
    try:
        saved = upsert_client_profile(get_store(), FromProfileForm(profile))
    except StoreError as e:
        flash(f'Could not save client: {e}', 'error')
    else:
        flash(f'Client {saved.company_name} saved.', 'success')
    return redirect(url_for('clients.index'))


@clients_bp.route('/<client_id>/delete', methods=['POST'])
@login_required
def delete(client_id):
    try:
        deleted = get_store().delete('clients', client_id)
    except StoreError as e:
        flash(str(e), 'error')
    else:
        flash('Client profile deleted.' if deleted else 'Client profile not found.',
              'success' if deleted else 'error')
    return redirect(url_for('clients.index'))


@clients_bp.route('/import', methods=['POST'])
@login_required
def import_csv():
    form = ClientImportForm()
    if not form.validate_on_submit():
        flash('Please choose a CSV file to import.', 'error')
        return redirect(url_for('clients.index'))

    try:
        content = form.csv_file.data.stream.read().decode('utf-8-sig')
    except UnicodeDecodeError:
        flash('The file is not valid UTF-8 CSV.', 'error')
        return redirect(url_for('clients.index'))

    try:
        result = import_clients(get_store(), content)
    except StoreError as e:
        flash(f'Import stopped: {e}', 'error')
        return redirect(url_for('clients.index'))

    flash(f'Successfully imported {result.imported_count} clients into the master.', 'success')
    if result.skipped_rows:
        rows = ', '.join(str(r) for r in result.skipped_rows)
        flash(f'Skipped rows without company name or CIN: {rows}', 'warning')
    return redirect(url_for('clients.index'))


@clients_bp.route('/sample.csv')
@login_required
def sample():
    return Response(
        sample_csv(),
        mimetype='text/csv',
        headers={"Content-Disposition": "attachment; filename=client_master_template.csv"},
    )


@clients_bp.route('/export.csv')
@login_required
def export():
    return Response(
        export_clients_csv(get_store().get('clients')),
        mimetype='text/csv',
        headers={"Content-Disposition": "attachment; filename=client_master.csv"},
    )
