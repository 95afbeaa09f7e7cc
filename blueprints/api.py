"""
REST API blueprint for programmatic access to the asset register.

Authentication: API key via header  Authorization: Bearer <API_KEY>
The API key is set via the environment variable API_KEY.

All responses are JSON unless a file export is requested. Monetary values
are floats rounded to 2 decimals. Dates are ISO 8601 (YYYY-MM-DD).
"""

from datetime import date
from functools import wraps
from io import BytesIO

from flask import Blueprint, current_app, jsonify, request, send_file

from audit import log_action, verify_integrity
from depreciation import (
    DEPRECIATION_METHODS, USEFUL_LIFE_PRESETS,
    annual_depreciation_report, compute_schedule, get_book_value,
)
from drafts import AssetDraft, DraftValidationError
from exports import (
    PDF_MIMETYPE, XLSX_MIMETYPE,
    build_annual_report_pdf, build_annual_report_xlsx,
    build_schedule_pdf, build_schedule_xlsx, pdf_language,
)
from i18n import get_translator, is_rtl, normalize_language, translate
from models import SiteSettings, db
from repository import AssetRepository

api_bp = Blueprint('api', __name__)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

def require_api_key(f):
    """Decorator: require a valid API key in the Authorization header."""
    @wraps(f)
    def decorated(*args, **kwargs):
        api_key = current_app.config.get('API_KEY', '')
        if not api_key:
            return jsonify({'error': 'API not configured. Set API_KEY environment variable.'}), 503

        auth = request.headers.get('Authorization', '')
        if not auth.startswith('Bearer ') or auth[7:] != api_key:
            return jsonify({'error': 'Unauthorized. Provide header: Authorization: Bearer <API_KEY>'}), 401

        return f(*args, **kwargs)
    return decorated


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _language():
    """?lang= overrides the site language for labels in exports and errors."""
    lang = request.args.get('lang')
    if lang:
        return normalize_language(lang)
    return normalize_language(SiteSettings.get_settings().language)


def _pdf_options():
    """Translator and builder options for PDF exports."""
    settings = SiteSettings.get_settings()
    font_path = current_app.config.get('PDF_FONT_PATH')
    t = get_translator(pdf_language(_language(), font_path))
    return t, {'currency': settings.currency, 'font_path': font_path,
               'generated_by': settings.business_name}


def _entry_to_dict(entry):
    return {
        'year': entry['year'],
        'depreciation': round(entry['depreciation'], 2),
        'accumulated_depreciation': round(entry['accumulated_depreciation'], 2),
        'book_value': round(entry['book_value'], 2),
    }


def _asset_to_dict(a):
    """Serialize an Asset to a dict."""
    return {
        'id': a.id,
        'name': a.name,
        'description': a.description,
        'purchase_date': a.purchase_date.isoformat() if a.purchase_date else None,
        'cost': a.cost,
        'salvage_value': a.salvage_value,
        'useful_life': a.useful_life,
        'depreciation_method': a.depreciation_method,
        'notes': a.notes,
        'book_value': round(get_book_value(a), 2),
        'created_at': a.created_at.isoformat() if a.created_at else None,
        'updated_at': a.updated_at.isoformat() if a.updated_at else None,
    }


def _validation_error(err):
    lang = _language()
    return jsonify({
        'error': 'Validation failed',
        'details': [translate(key, lang) for key in err.errors],
        'codes': err.errors,
    }), 400


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None
    return data


def _report_year():
    return request.args.get('year', date.today().year, type=int)


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

@api_bp.route('/methods', methods=['GET'])
@require_api_key
def list_methods():
    """Depreciation methods with localized labels, plus useful-life presets."""
    t = get_translator(_language())
    return jsonify({
        'methods': [{'value': key, 'label': t(label)} for key, label in DEPRECIATION_METHODS.items()],
        'useful_life_presets': USEFUL_LIFE_PRESETS,
    })


# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------

@api_bp.route('/assets', methods=['GET'])
@require_api_key
def list_assets():
    """
    List assets, newest purchase first.   Optional query param: q (search name/description).
    """
    repo = AssetRepository()
    q = request.args.get('q', '').strip()
    assets = repo.search(q) if q else repo.list_ordered()
    return jsonify({'assets': [_asset_to_dict(a) for a in assets]})


@api_bp.route('/assets', methods=['POST'])
@require_api_key
def create_asset():
    """
    Create a new asset.
    Body: { name, purchase_date, cost, salvage_value?, useful_life,
            depreciation_method?, description?, notes? }
    """
    data = _json_body()
    if data is None:
        return jsonify({'error': 'Request body must be a JSON object'}), 400

    draft = AssetDraft.from_template()
    try:
        draft.update_from_form(data)
        asset = draft.commit(AssetRepository())
    except DraftValidationError as err:
        return _validation_error(err)
    except (ValueError, TypeError) as e:
        return jsonify({'error': f'Invalid value: {e}'}), 400

    current_app.logger.info('Asset %s created via API', asset.id)
    return jsonify({'asset': _asset_to_dict(asset)}), 201


@api_bp.route('/assets/<int:asset_id>', methods=['GET'])
@require_api_key
def get_asset(asset_id):
    """Get a single asset by ID."""
    asset = AssetRepository().get(asset_id)
    if not asset:
        return jsonify({'error': f'Asset {asset_id} not found'}), 404
    return jsonify({'asset': _asset_to_dict(asset)})


@api_bp.route('/assets/<int:asset_id>', methods=['PUT', 'PATCH'])
@require_api_key
def update_asset(asset_id):
    """
    Update an asset. Only provided fields are changed.
    Body: { name?, purchase_date?, cost?, salvage_value?, useful_life?,
            depreciation_method?, description?, notes? }
    """
    repo = AssetRepository()
    asset = repo.get(asset_id)
    if not asset:
        return jsonify({'error': f'Asset {asset_id} not found'}), 404

    data = _json_body()
    if data is None:
        return jsonify({'error': 'Request body must be a JSON object'}), 400

    draft = AssetDraft.from_asset(asset)
    try:
        draft.update_from_form(data)
        asset = draft.commit(repo)
    except DraftValidationError as err:
        return _validation_error(err)
    except (ValueError, TypeError) as e:
        return jsonify({'error': f'Invalid value: {e}'}), 400

    current_app.logger.info('Asset %s updated via API', asset.id)
    return jsonify({'asset': _asset_to_dict(asset)})


@api_bp.route('/assets/<int:asset_id>', methods=['DELETE'])
@require_api_key
def delete_asset(asset_id):
    """Delete an asset."""
    if not AssetRepository().delete(asset_id):
        return jsonify({'error': f'Asset {asset_id} not found'}), 404
    current_app.logger.info('Asset %s deleted via API', asset_id)
    return jsonify({'deleted': True, 'id': asset_id})


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------

@api_bp.route('/assets/<int:asset_id>/schedule', methods=['GET'])
@require_api_key
def asset_schedule(asset_id):
    """Depreciation schedule of a stored asset."""
    asset = AssetRepository().get(asset_id)
    if not asset:
        return jsonify({'error': f'Asset {asset_id} not found'}), 404
    schedule = compute_schedule(asset)
    return jsonify({
        'asset_id': asset.id,
        'schedule': [_entry_to_dict(e) for e in schedule],
    })


@api_bp.route('/schedule', methods=['POST'])
@require_api_key
def preview_schedule():
    """
    Compute a schedule for an unsaved asset.
    Body: { purchase_date, cost, salvage_value?, useful_life, depreciation_method? }
    """
    data = _json_body()
    if data is None:
        return jsonify({'error': 'Request body must be a JSON object'}), 400

    draft = AssetDraft.from_template()
    try:
        draft.update_from_form(data)
    except (ValueError, TypeError) as e:
        return jsonify({'error': f'Invalid value: {e}'}), 400

    errors = [e for e in draft.validate() if e != 'validation.nameRequired']
    if errors:
        return _validation_error(DraftValidationError(errors))

    return jsonify({'schedule': [_entry_to_dict(e) for e in draft.preview_schedule()]})


@api_bp.route('/assets/<int:asset_id>/schedule.xlsx', methods=['GET'])
@require_api_key
def asset_schedule_xlsx(asset_id):
    asset = AssetRepository().get(asset_id)
    if not asset:
        return jsonify({'error': f'Asset {asset_id} not found'}), 404
    lang = _language()
    t = get_translator(lang)
    data = build_schedule_xlsx(asset, compute_schedule(asset), t, rtl=is_rtl(lang))
    log_action('EXPORT', 'Asset', asset.id, new_values={'format': 'xlsx'})
    db.session.commit()
    current_app.logger.info('Schedule of asset %s exported as xlsx', asset.id)
    return send_file(BytesIO(data), mimetype=XLSX_MIMETYPE, as_attachment=True,
                     download_name=f"{t('export.scheduleFile', asset.name)}.xlsx")


@api_bp.route('/assets/<int:asset_id>/schedule.pdf', methods=['GET'])
@require_api_key
def asset_schedule_pdf(asset_id):
    asset = AssetRepository().get(asset_id)
    if not asset:
        return jsonify({'error': f'Asset {asset_id} not found'}), 404
    t, options = _pdf_options()
    data = build_schedule_pdf(asset, compute_schedule(asset), t, **options)
    log_action('EXPORT', 'Asset', asset.id, new_values={'format': 'pdf'})
    db.session.commit()
    current_app.logger.info('Schedule of asset %s exported as pdf', asset.id)
    return send_file(BytesIO(data), mimetype=PDF_MIMETYPE, as_attachment=True,
                     download_name=f"{t('export.scheduleFile', asset.name)}.pdf")


# ---------------------------------------------------------------------------
# Annual depreciation report
# ---------------------------------------------------------------------------

@api_bp.route('/reports/depreciation', methods=['GET'])
@require_api_key
def depreciation_report():
    """
    Depreciation and book value per asset for a given year.
    Query params: year (default: current year)
    """
    report = annual_depreciation_report(AssetRepository().list_ordered(), _report_year())
    return jsonify({
        'year': report['year'],
        'rows': [{
            'asset_id': r['asset_id'],
            'name': r['name'],
            'depreciation': round(r['depreciation'], 2),
            'book_value': round(r['book_value'], 2),
        } for r in report['rows']],
        'total_depreciation': round(report['total_depreciation'], 2),
    })


@api_bp.route('/reports/depreciation.xlsx', methods=['GET'])
@require_api_key
def depreciation_report_xlsx():
    lang = _language()
    t = get_translator(lang)
    report = annual_depreciation_report(AssetRepository().list_ordered(), _report_year())
    data = build_annual_report_xlsx(report, t, rtl=is_rtl(lang))
    return send_file(BytesIO(data), mimetype=XLSX_MIMETYPE, as_attachment=True,
                     download_name=f"{t('export.reportFile', report['year'])}.xlsx")


@api_bp.route('/reports/depreciation.pdf', methods=['GET'])
@require_api_key
def depreciation_report_pdf():
    t, options = _pdf_options()
    report = annual_depreciation_report(AssetRepository().list_ordered(), _report_year())
    data = build_annual_report_pdf(report, t, **options)
    return send_file(BytesIO(data), mimetype=PDF_MIMETYPE, as_attachment=True,
                     download_name=f"{t('export.reportFile', report['year'])}.pdf")


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------

@api_bp.route('/audit/verify', methods=['GET'])
@require_api_key
def audit_verify():
    """Verify the audit log hash chain."""
    is_valid, total, broken_id, message = verify_integrity(db)
    return jsonify({
        'valid': is_valid,
        'total': total,
        'first_broken_id': broken_id,
        'message': message,
    })
