import logging
import os

from flask import Flask, redirect, url_for
from flask_login import LoginManager
from werkzeug.security import generate_password_hash

from audit import init_audit
from helpers import format_currency, format_date
from i18n import (
    DEFAULT_LANGUAGE, LANGUAGE_NAMES, SUPPORTED_LANGUAGES,
    current_language, get_translator, is_rtl, normalize_language,
)
from models import db, User, SiteSettings

# Load .env file if python-dotenv is available
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass


def create_app(test_config=None):
    app = Flask(__name__, instance_relative_config=True)

    # Configuration
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get(
        'DATABASE_URL', 'sqlite:///' + os.path.join(app.instance_path, 'assets.db'))
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['API_KEY'] = os.environ.get('API_KEY', '')
    app.config['ADMIN_USERNAME'] = os.environ.get('ADMIN_USERNAME', 'admin')
    app.config['ADMIN_PASSWORD'] = os.environ.get('ADMIN_PASSWORD', '')
    app.config['DEFAULT_LANGUAGE'] = normalize_language(os.environ.get('DEFAULT_LANGUAGE', DEFAULT_LANGUAGE))
    app.config['DEFAULT_CURRENCY'] = os.environ.get('DEFAULT_CURRENCY', 'EGP')
    app.config['PDF_FONT_PATH'] = os.environ.get('PDF_FONT_PATH') or None
    app.config['LOG_LEVEL'] = os.environ.get('LOG_LEVEL', 'INFO')
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(getattr(logging, str(app.config['LOG_LEVEL']).upper(), logging.INFO))

    os.makedirs(app.instance_path, exist_ok=True)

    # Initialize extensions
    db.init_app(app)
    login_manager = LoginManager()
    login_manager.init_app(app)
    login_manager.login_view = 'auth.login'
    login_manager.login_message = 'auth.required'
    login_manager.login_message_category = 'info'

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    # Initialize audit trail (must be before first commit)
    init_audit(app, db)

    # Create tables and seed default data
    with app.app_context():
        db.create_all()
        _seed_defaults(app)

    # Context processors
    @app.context_processor
    def inject_globals():
        settings = SiteSettings.get_settings()
        language = current_language()
        return {
            'site_settings': settings,
            'language': language,
            'languages': [(code, LANGUAGE_NAMES[code]) for code in SUPPORTED_LANGUAGES],
            'text_dir': 'rtl' if is_rtl(language) else 'ltr',
            't': get_translator(language),
        }

    # Template filters
    def currency_filter(value):
        return format_currency(value, current_language(), SiteSettings.get_settings().currency)
    app.jinja_env.filters['currency'] = currency_filter
    app.jinja_env.filters['date_format'] = lambda d: format_date(d, current_language())

    # Register blueprints
    from blueprints.auth import auth_bp
    from blueprints.admin import admin_bp
    from blueprints.api import api_bp
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(api_bp, url_prefix='/api/v1')

    @app.route('/')
    def index():
        return redirect(url_for('admin.assets'))

    return app


def _seed_defaults(app):
    """Create default admin user and settings if they don't exist."""
    admin_username = app.config['ADMIN_USERNAME']
    admin_password = app.config['ADMIN_PASSWORD']

    existing_admin = User.query.filter_by(username=admin_username).first()
    if not existing_admin:
        # Create an admin only if there is none at all
        if not User.query.filter_by(is_admin=True).first():
            if not admin_password:
                app.logger.warning('ADMIN_PASSWORD not set, seeding admin with the default password.')
            admin = User(
                username=admin_username,
                password_hash=generate_password_hash(admin_password or 'password123'),
                display_name='Administrator',
                is_admin=True,
            )
            db.session.add(admin)
            db.session.commit()
    elif admin_password:
        # Admin user exists – update password if configured
        existing_admin.password_hash = generate_password_hash(admin_password)
        db.session.commit()

    # Ensure settings exist
    if SiteSettings.query.first() is None:
        db.session.add(SiteSettings(language=app.config['DEFAULT_LANGUAGE'],
                                    currency=app.config['DEFAULT_CURRENCY']))
        db.session.commit()
