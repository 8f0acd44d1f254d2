# routes/decorators.py
"""
Shared decorators for workspace routes.
"""

from functools import wraps
from flask import flash, redirect, url_for
from flask_login import current_user


def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated or not current_user.is_admin:
            flash('You must be an admin to access this page.', 'error')
            return redirect(url_for('main.index'))
        return f(*args, **kwargs)
    return decorated_function


def template_builder_required(f):
    """Decorator to check if user may create templates."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not (current_user.is_admin or current_user.can_create_template):
            flash('You do not have permission to create templates.', 'error')
            return redirect(url_for('library.index'))
        return f(*args, **kwargs)
    return decorated_function
