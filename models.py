from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from datetime import datetime, date

db = SQLAlchemy()


class User(UserMixin, db.Model):
    """Application user for authentication."""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(100), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    display_name = db.Column(db.String(200), default='')
    is_admin = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<User {self.username}>'


class SiteSettings(db.Model):
    """Global application settings (single row)."""
    __tablename__ = 'site_settings'

    id = db.Column(db.Integer, primary_key=True)
    business_name = db.Column(db.String(200), default='Fixed Asset Register')
    language = db.Column(db.String(5), default='ar')     # 'ar' or 'en'
    currency = db.Column(db.String(3), default='EGP')    # ISO 4217 code, display only

    @staticmethod
    def get_settings():
        settings = SiteSettings.query.first()
        if not settings:
            settings = SiteSettings()
            db.session.add(settings)
            db.session.commit()
        return settings


class Asset(db.Model):
    """
    A depreciable fixed asset.

    The schedule is computed on demand by the depreciation module and never
    stored, so a changed asset always yields a fresh schedule.
    """
    __tablename__ = 'assets'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(300), nullable=False)
    description = db.Column(db.Text, nullable=True)

    purchase_date = db.Column(db.Date, nullable=False, default=date.today)
    cost = db.Column(db.Float, nullable=False)
    salvage_value = db.Column(db.Float, nullable=False, default=0.0)
    useful_life = db.Column(db.Integer, nullable=False)  # years
    depreciation_method = db.Column(db.String(20), nullable=False, default='straight-line')
    # 'straight-line'    = equal yearly amounts
    # 'double-declining' = 2 / life of the remaining book value

    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def depreciable_amount(self):
        return max(self.cost - (self.salvage_value or 0), 0)

    @property
    def is_fully_depreciated(self):
        """Check if the asset has reached its salvage value by the end of this year."""
        from depreciation import get_book_value
        return get_book_value(self) <= (self.salvage_value or 0)

    def __repr__(self):
        return f'<Asset {self.name} ({self.depreciation_method})>'


class AuditLog(db.Model):
    """
    Append-only audit trail for all data changes.

    Each entry records who changed what and when, with before/after
    snapshots as JSON. Entries form a hash chain: each entry_hash is
    computed from the previous hash + entry data, so tampering with any
    row invalidates all subsequent hashes.
    """
    __tablename__ = 'audit_log'

    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    user_id = db.Column(db.Integer, nullable=True)          # NULL for system actions
    username = db.Column(db.String(100), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)
    source = db.Column(db.String(20), nullable=False, default='web')  # 'web', 'api', 'system'
    action = db.Column(db.String(20), nullable=False)        # 'CREATE', 'UPDATE', 'DELETE', 'LOGIN', 'EXPORT', ...
    entity_type = db.Column(db.String(50), nullable=False)   # e.g. 'Asset', 'User'
    entity_id = db.Column(db.Integer, nullable=True)
    old_values = db.Column(db.Text, nullable=True)
    new_values = db.Column(db.Text, nullable=True)
    previous_hash = db.Column(db.String(64), nullable=False, default='0' * 64)
    entry_hash = db.Column(db.String(64), nullable=False)

    def __repr__(self):
        return f'<AuditLog {self.id} {self.action} {self.entity_type}:{self.entity_id}>'
