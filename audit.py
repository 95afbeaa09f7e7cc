"""
Audit trail module: automatic, hash-chained logging of all DB changes.

Provides:
- SQLAlchemy session event listener (captures CREATE / UPDATE / DELETE)
- Explicit entries for non-CRUD events (logins, exports)
- Hash chain integrity verification
- Source detection (web / api / system)

Every mutation of an audited model is recorded with before/after JSON
snapshots, and entries are chained via SHA-256 hashes, so editing or
deleting any audit row breaks the chain from that row on.
"""

import hashlib
import json
from datetime import date, datetime

from flask import has_request_context, request
from flask_login import current_user
from sqlalchemy import event
from sqlalchemy.orm.attributes import get_history


AUDITED_MODELS = set()  # populated by init_audit()

# Columns to always skip in snapshots (sensitive / noisy)
SKIP_COLUMNS = {'password_hash'}

GENESIS_HASH = '0' * 64

# session.info key holding the hash of the newest not-yet-flushed entry
_PENDING_HASH_KEY = 'audit_pending_hash'


# ── Serialisation helper ──────────────────────────────────────────────────

def _json_value(val):
    if isinstance(val, (datetime, date)):
        return val.isoformat()
    if isinstance(val, (type(None), int, float, bool, str)):
        return val
    return str(val)


def _snapshot(obj):
    """Return a JSON-serialisable dict of all column values."""
    return {
        col.name: _json_value(getattr(obj, col.name, None))
        for col in obj.__table__.columns
        if col.name not in SKIP_COLUMNS
    }


def _diff(old, new):
    """Return only changed keys (for UPDATE actions)."""
    changed_old, changed_new = {}, {}
    for key in set(old) | set(new):
        ov, nv = old.get(key), new.get(key)
        if ov != nv:
            changed_old[key] = ov
            changed_new[key] = nv
    return changed_old, changed_new


# ── Hash chain ─────────────────────────────────────────────────────────────

def _compute_hash(previous_hash, timestamp_iso, action, entity_type, entity_id,
                  old_json, new_json):
    """SHA-256 over deterministic concatenation of entry fields."""
    payload = '|'.join([
        previous_hash,
        timestamp_iso,
        action,
        entity_type,
        str(entity_id or ''),
        old_json or '',
        new_json or '',
    ])
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()


def _get_previous_hash(db_session):
    """Hash of the newest entry, including entries not flushed yet."""
    from models import AuditLog
    if any(isinstance(obj, AuditLog) for obj in db_session.new):
        return db_session.info[_PENDING_HASH_KEY]
    with db_session.no_autoflush:
        last = db_session.query(AuditLog.entry_hash) \
            .order_by(AuditLog.id.desc()).first()
    return last[0] if last else GENESIS_HASH


# ── Request context helpers ────────────────────────────────────────────────

def _detect_source():
    if not has_request_context():
        return 'system'
    if request.path.startswith('/api/'):
        return 'api'
    return 'web'


def _current_user_info():
    """Return (user_id, username) or (None, 'system')."""
    if has_request_context() and current_user and current_user.is_authenticated:
        return current_user.id, current_user.username
    if _detect_source() == 'api':
        return None, 'api'
    return None, 'system'


def _current_ip():
    if has_request_context():
        return request.remote_addr
    return None


# ── Core: write an audit entry ─────────────────────────────────────────────

def _write_audit(db_session, action, entity_type, entity_id,
                 old_values=None, new_values=None):
    """Add one AuditLog row to the session, chained to the previous one."""
    from models import AuditLog

    user_id, username = _current_user_info()
    now = datetime.utcnow()
    old_json = json.dumps(old_values, ensure_ascii=False, sort_keys=True) if old_values else None
    new_json = json.dumps(new_values, ensure_ascii=False, sort_keys=True) if new_values else None

    prev_hash = _get_previous_hash(db_session)
    entry_hash = _compute_hash(prev_hash, now.isoformat(), action, entity_type,
                               entity_id, old_json, new_json)

    db_session.add(AuditLog(
        timestamp=now,
        user_id=user_id,
        username=username,
        ip_address=_current_ip(),
        source=_detect_source(),
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        old_values=old_json,
        new_values=new_json,
        previous_hash=prev_hash,
        entry_hash=entry_hash,
    ))
    db_session.info[_PENDING_HASH_KEY] = entry_hash


# ── SQLAlchemy session event listener ──────────────────────────────────────

# session.info key for snapshots captured at before_flush time, written after flush
_PENDING_CHANGES_KEY = 'audit_pending_changes'


def _on_before_flush(session, flush_context, instances):
    """Capture snapshots of pending changes before the flush runs."""
    creates = [obj for obj in session.new if type(obj) in AUDITED_MODELS]
    updates = []
    deletes = []

    for obj in list(session.dirty):
        if type(obj) not in AUDITED_MODELS:
            continue
        if not session.is_modified(obj, include_collections=False):
            continue
        new_snap = _snapshot(obj)
        old_snap = dict(new_snap)
        for col in obj.__table__.columns:
            if col.name in SKIP_COLUMNS:
                continue
            history = get_history(obj, col.name)
            if history.has_changes():
                old_snap[col.name] = _json_value(history.deleted[0] if history.deleted else None)

        diff_old, diff_new = _diff(old_snap, new_snap)
        # updated_at alone is not a change worth recording
        diff_old.pop('updated_at', None)
        diff_new.pop('updated_at', None)
        if diff_old or diff_new:
            updates.append((type(obj).__name__, new_snap.get('id'), diff_old, diff_new))

    for obj in list(session.deleted):
        if type(obj) not in AUDITED_MODELS:
            continue
        snap = _snapshot(obj)
        deletes.append((type(obj).__name__, snap.get('id'), snap))

    session.info[_PENDING_CHANGES_KEY] = (creates, updates, deletes)


def _on_after_flush(session, flush_context):
    """Write audit entries after flush, once IDs are available for CREATEs."""
    creates, updates, deletes = session.info.pop(_PENDING_CHANGES_KEY, ([], [], []))

    for obj in creates:
        snap = _snapshot(obj)
        _write_audit(session, 'CREATE', type(obj).__name__, snap.get('id'), None, snap)

    for cls_name, entity_id, diff_old, diff_new in updates:
        _write_audit(session, 'UPDATE', cls_name, entity_id, diff_old, diff_new)

    for cls_name, entity_id, snap in deletes:
        _write_audit(session, 'DELETE', cls_name, entity_id, snap, None)


# ── Integrity verification ─────────────────────────────────────────────────

def verify_integrity(db):
    """
    Walk the entire audit_log table and verify the hash chain.

    Returns:
        (is_valid: bool, total: int, first_broken_id: int | None, message: str)
    """
    from models import AuditLog

    entries = db.session.query(AuditLog).order_by(AuditLog.id.asc()).all()
    if not entries:
        return True, 0, None, 'No audit entries.'

    prev_hash = GENESIS_HASH
    for entry in entries:
        if entry.previous_hash != prev_hash:
            return (False, len(entries), entry.id,
                    f'Chain broken at entry #{entry.id}: previous_hash does not match.')

        expected = _compute_hash(
            entry.previous_hash,
            entry.timestamp.isoformat(),
            entry.action,
            entry.entity_type,
            entry.entity_id,
            entry.old_values,
            entry.new_values,
        )
        if entry.entry_hash != expected:
            return (False, len(entries), entry.id,
                    f'Hash mismatch at entry #{entry.id}: data may have been altered.')

        prev_hash = entry.entry_hash

    return True, len(entries), None, f'All {len(entries)} entries verified.'


# ── Initialisation ─────────────────────────────────────────────────────────

def log_action(action: str, entity_type: str, entity_id,
               old_values=None, new_values=None):
    """Write an explicit audit entry (logins, exports, ...).

    The entry is added to the current session; the caller commits.
    """
    from models import db as _db
    _write_audit(_db.session, action, entity_type, entity_id, old_values, new_values)


def init_audit(app, db):
    """
    Register the SQLAlchemy event listeners.  Call this after db.init_app().
    """
    from models import User, SiteSettings, Asset

    AUDITED_MODELS.clear()
    AUDITED_MODELS.update({User, SiteSettings, Asset})

    session_cls = db.session.__class__
    if not event.contains(session_cls, 'before_flush', _on_before_flush):
        event.listen(session_cls, 'before_flush', _on_before_flush)
        event.listen(session_cls, 'after_flush', _on_after_flush)
    app.logger.info('Audit trail initialised (hash-chained, %d models tracked).',
                    len(AUDITED_MODELS))
