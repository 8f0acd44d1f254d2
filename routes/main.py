from datetime import datetime

from flask import Blueprint, render_template
from flask_login import login_required

from utils import doc_label, get_store

main_bp = Blueprint('main', __name__)

RECENT_LIMIT = 5


@main_bp.route('/')
@login_required
def index():
    store = get_store()
    resolutions = store.get('resolutions')
    clients = store.get('clients')

    now = datetime.utcnow()
    this_month = [
        r for r in resolutions
        if r.created_at and r.created_at.year == now.year and r.created_at.month == now.month
    ]

    return render_template(
        'dashboard.html',
        client_count=len(clients),
        document_count=len(resolutions),
        month_count=len(this_month),
        recent=resolutions[:RECENT_LIMIT],
        doc_label=doc_label,
    )
