from datetime import date
from io import BytesIO

from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, send_file, session, url_for
from flask_login import login_required

from audit import log_action
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
from helpers import get_year_choices
from i18n import SUPPORTED_LANGUAGES, current_language, get_translator, is_rtl
from models import SiteSettings, db
from repository import AssetRepository

admin_bp = Blueprint('admin', __name__, template_folder='../templates/admin')


@admin_bp.before_request
@login_required
def require_login():
    """All admin routes require authentication."""
    pass


def _t():
    return get_translator(current_language())


def _pdf_options():
    """Translator and builder options for PDF exports."""
    settings = SiteSettings.get_settings()
    font_path = current_app.config.get('PDF_FONT_PATH')
    t = get_translator(pdf_language(current_language(), font_path))
    return t, {'currency': settings.currency, 'font_path': font_path,
               'generated_by': settings.business_name}


def _get_asset_or_404(repo, id):
    asset = repo.get(id)
    if asset is None:
        abort(404)
    return asset


def _render_form(draft):
    return render_template('asset_form.html',
                           draft=draft,
                           methods=DEPRECIATION_METHODS,
                           presets=USEFUL_LIFE_PRESETS,
                           preview=draft.preview_schedule())


def _save_draft(draft, repo):
    """Apply the submitted form to a draft and commit it; re-render on errors."""
    t = _t()
    try:
        draft.update_from_form(request.form)
    except ValueError:
        flash(t('form.invalidNumber'), 'error')
        return _render_form(draft)

    # "Preview" re-renders with the computed schedule, nothing is saved
    if request.form.get('action') == 'preview':
        return _render_form(draft)

    was_new = draft.is_new
    try:
        asset = draft.commit(repo)
    except DraftValidationError as err:
        current_app.logger.warning('Rejected asset draft: %s', ', '.join(err.errors))
        for key in err.errors:
            flash(t(key), 'error')
        return _render_form(draft)

    current_app.logger.info('Asset %s %s', asset.id, 'created' if was_new else 'updated')
    flash(t('assets.created' if was_new else 'assets.updated', asset.name), 'success')
    return redirect(url_for('admin.asset_detail', id=asset.id))


# --- Assets ---

@admin_bp.route('/assets')
def assets():
    repo = AssetRepository()
    q = request.args.get('q', '').strip()
    assets_list = repo.search(q) if q else repo.list_ordered()

    book_values = {a.id: get_book_value(a) for a in assets_list}

    return render_template('assets.html',
                           assets=assets_list,
                           book_values=book_values,
                           q=q,
                           total_cost=sum(a.cost for a in assets_list),
                           total_book_value=sum(book_values.values()),
                           methods=DEPRECIATION_METHODS)


@admin_bp.route('/assets/new', methods=['GET', 'POST'])
def asset_new():
    draft = AssetDraft.from_template()
    if request.method == 'POST':
        return _save_draft(draft, AssetRepository())
    return _render_form(draft)


@admin_bp.route('/assets/<int:id>')
def asset_detail(id):
    asset = _get_asset_or_404(AssetRepository(), id)
    return render_template('asset_detail.html',
                           asset=asset,
                           schedule=compute_schedule(asset),
                           book_value=get_book_value(asset),
                           methods=DEPRECIATION_METHODS,
                           current_year=date.today().year)


@admin_bp.route('/assets/<int:id>/edit', methods=['GET', 'POST'])
def asset_edit(id):
    repo = AssetRepository()
    draft = AssetDraft.from_asset(_get_asset_or_404(repo, id))
    if request.method == 'POST':
        return _save_draft(draft, repo)
    return _render_form(draft)


@admin_bp.route('/assets/<int:id>/delete', methods=['POST'])
def asset_delete(id):
    repo = AssetRepository()
    asset = _get_asset_or_404(repo, id)
    name = asset.name
    repo.delete(id)
    current_app.logger.info('Asset %s deleted', id)
    flash(_t()('assets.deleted', name), 'success')
    return redirect(url_for('admin.assets'))


@admin_bp.route('/assets/<int:id>/schedule.xlsx')
def asset_schedule_xlsx(id):
    asset = _get_asset_or_404(AssetRepository(), id)
    t = _t()
    data = build_schedule_xlsx(asset, compute_schedule(asset), t, rtl=is_rtl(current_language()))
    log_action('EXPORT', 'Asset', asset.id, new_values={'format': 'xlsx'})
    db.session.commit()
    current_app.logger.info('Schedule of asset %s exported as xlsx', asset.id)
    return send_file(BytesIO(data), mimetype=XLSX_MIMETYPE, as_attachment=True,
                     download_name=f"{t('export.scheduleFile', asset.name)}.xlsx")


@admin_bp.route('/assets/<int:id>/schedule.pdf')
def asset_schedule_pdf(id):
    asset = _get_asset_or_404(AssetRepository(), id)
    t, options = _pdf_options()
    data = build_schedule_pdf(asset, compute_schedule(asset), t, **options)
    log_action('EXPORT', 'Asset', asset.id, new_values={'format': 'pdf'})
    db.session.commit()
    current_app.logger.info('Schedule of asset %s exported as pdf', asset.id)
    return send_file(BytesIO(data), mimetype=PDF_MIMETYPE, as_attachment=True,
                     download_name=f"{t('export.scheduleFile', asset.name)}.pdf")


# --- Annual report ---

@admin_bp.route('/report')
def report():
    year = request.args.get('year', date.today().year, type=int)
    report_data = annual_depreciation_report(AssetRepository().list_ordered(), year)
    return render_template('report.html',
                           year=year,
                           years=get_year_choices(),
                           report=report_data)


@admin_bp.route('/report/<int:year>.xlsx')
def report_xlsx(year):
    t = _t()
    report_data = annual_depreciation_report(AssetRepository().list_ordered(), year)
    data = build_annual_report_xlsx(report_data, t, rtl=is_rtl(current_language()))
    return send_file(BytesIO(data), mimetype=XLSX_MIMETYPE, as_attachment=True,
                     download_name=f"{t('export.reportFile', year)}.xlsx")


@admin_bp.route('/report/<int:year>.pdf')
def report_pdf(year):
    t, options = _pdf_options()
    report_data = annual_depreciation_report(AssetRepository().list_ordered(), year)
    data = build_annual_report_pdf(report_data, t, **options)
    return send_file(BytesIO(data), mimetype=PDF_MIMETYPE, as_attachment=True,
                     download_name=f"{t('export.reportFile', year)}.pdf")


# --- Settings ---

@admin_bp.route('/settings', methods=['GET', 'POST'])
def settings():
    site_settings = SiteSettings.get_settings()
    if request.method == 'POST':
        site_settings.business_name = request.form.get('business_name', '').strip() or site_settings.business_name
        language = request.form.get('language')
        if language in SUPPORTED_LANGUAGES:
            site_settings.language = language
            session.pop('language', None)
        currency = request.form.get('currency', '').strip().upper()
        if len(currency) == 3 and currency.isalpha():
            site_settings.currency = currency
        db.session.commit()
        flash(_t()('settings.saved'), 'success')
        return redirect(url_for('admin.settings'))

    return render_template('settings.html', settings=site_settings)


@admin_bp.route('/language/<code>')
def set_language(code):
    """Per-session language switch; the site default stays unchanged."""
    if code in SUPPORTED_LANGUAGES:
        session['language'] = code
    target = request.referrer
    if not target or not target.startswith(request.host_url):
        target = url_for('admin.assets')
    return redirect(target)
