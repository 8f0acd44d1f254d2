import logging

from flask import Blueprint, render_template, flash, redirect, url_for
from flask_login import login_required

from routes.decorators import admin_required
from services.drafting import StoreError
from utils import doc_label, get_store, local_time

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/admin')
@login_required
@admin_required
def index():
    store = get_store()
    users = store.get('users')
    owners = {u.id: u.name for u in users}

    return render_template(
        'admin/index.html',
        users=users,
        templates=store.get('templates'),
        resolutions=store.get('resolutions'),
        owners=owners,
        doc_label=doc_label,
        local_time=local_time,
    )


def _toggle_user(user_id, attribute, message):
    store = get_store()
    user = store.find('users', user_id)
    if user is None:
        flash('User not found.', 'error')
        return redirect(url_for('admin.index'))
    if user.is_admin:
        flash('Administrator accounts cannot be changed here.', 'error')
        return redirect(url_for('admin.index'))

    setattr(user, attribute, not getattr(user, attribute))
    try:
        store.put('users', user)
    except StoreError as e:
        flash(str(e), 'error')
    else:
        logger.info(f"Admin set {attribute}={getattr(user, attribute)} for {user.email}")
        flash(message.format(name=user.name, state='enabled' if getattr(user, attribute) else 'disabled'), 'success')
    return redirect(url_for('admin.index'))


@admin_bp.route('/admin/users/<user_id>/toggle-status', methods=['POST'])
@login_required
@admin_required
def toggle_status(user_id):
    return _toggle_user(user_id, 'is_active', 'Account for {name} {state}.')


@admin_bp.route('/admin/users/<user_id>/toggle-permission', methods=['POST'])
@login_required
@admin_required
def toggle_permission(user_id):
    return _toggle_user(user_id, 'can_create_template', 'Template creation for {name} {state}.')


@admin_bp.route('/admin/templates/<template_id>/delete', methods=['POST'])
@login_required
@admin_required
def delete_template(template_id):
    try:
        deleted = get_store().delete('templates', template_id)
    except StoreError as e:
        flash(str(e), 'error')
    else:
        flash('Template deleted.' if deleted else 'Template not found.', 'success' if deleted else 'error')
    return redirect(url_for('admin.index'))
