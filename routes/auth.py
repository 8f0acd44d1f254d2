import logging
from datetime import datetime

from flask import Blueprint, current_app, render_template, redirect, url_for, flash, request
from flask_login import login_user, logout_user, login_required, current_user
from models import User, db
from forms import RegistrationForm, LoginForm
from services.drafting import UserRole

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/register', methods=['GET', 'POST'])
def register():
    if current_user.is_authenticated:
        return redirect(url_for('main.index'))

    form = RegistrationForm()
    if form.validate_on_submit():
        email = form.email.data.strip().lower()
        if User.query.filter_by(email=email).first():
            flash('An account with that email already exists.', 'error')
            return render_template('register.html', form=form)

        user = User(
            email=email,
            name=form.name.data.strip(),
            role=UserRole.USER.value,
            can_create_template=True,
        )
        user.set_password(form.password.data)
        db.session.add(user)
        db.session.commit()
        logger.info(f"Registered user {email}")
        flash('Registration successful!', 'success')
        return redirect(url_for('auth.login'))

    return render_template('register.html', form=form)


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    if current_user.is_authenticated:
        return redirect(url_for('main.index'))

    form = LoginForm()
    if form.validate_on_submit():
        user = User.query.filter_by(email=form.email.data.strip().lower()).first()

        if user and user.check_password(form.password.data):
            if not user.active:
                flash('Your account has been deactivated. Contact an administrator.', 'error')
                return render_template('login.html', form=form)

            login_user(user)
            user.last_login = datetime.utcnow()
            db.session.commit()
            next_page = request.args.get('next')
            if next_page and next_page.startswith('/'):
                return redirect(next_page)
            return redirect(url_for('main.index'))
        else:
            flash('Invalid email or password', 'error')

    return render_template('login.html', form=form)


@auth_bp.route('/logout')
@login_required
def logout():
    logout_user()
    if current_app.config.get('WORKSPACE_MODE') == 'direct':
        # Direct mode signs the workspace user straight back in
        return redirect(url_for('main.index'))
    flash('You have been logged out successfully.', 'success')
    return redirect(url_for('auth.login'))
