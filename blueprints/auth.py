from flask import Blueprint, current_app, render_template, redirect, url_for, request, flash
from flask_login import login_user, logout_user, login_required, current_user
from werkzeug.security import check_password_hash
from models import db, User
from audit import log_action
from i18n import current_language, translate

auth_bp = Blueprint('auth', __name__, template_folder='../templates/auth')


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    if current_user.is_authenticated:
        return redirect(url_for('admin.assets'))

    if request.method == 'POST':
        username = request.form.get('username', '').strip()
        password = request.form.get('password', '')

        user = User.query.filter_by(username=username).first()
        if user and check_password_hash(user.password_hash, password):
            login_user(user)
            log_action('LOGIN', 'User', user.id,
                       new_values={'username': user.username})
            db.session.commit()
            next_page = request.args.get('next')
            # only follow local redirects
            if not next_page or not next_page.startswith('/') or next_page.startswith('//'):
                next_page = url_for('admin.assets')
            return redirect(next_page)

        current_app.logger.warning('Failed login for %r from %s', username, request.remote_addr)
        log_action('LOGIN_FAILED', 'User', None,
                   new_values={'username_attempted': username})
        db.session.commit()
        flash(translate('auth.invalid', current_language()), 'error')

    return render_template('login.html')


@auth_bp.route('/logout')
@login_required
def logout():
    log_action('LOGOUT', 'User', current_user.id,
               new_values={'username': current_user.username})
    db.session.commit()
    logout_user()
    flash(translate('auth.loggedOut', current_language()), 'success')
    return redirect(url_for('auth.login'))
