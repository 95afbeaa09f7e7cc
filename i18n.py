"""
UI translations (English / Arabic).

Lookups fall back to English and then to the key itself, so a missing
Arabic string never breaks a page. Placeholders {0}, {1}, ... are replaced
positionally.
"""

SUPPORTED_LANGUAGES = ('ar', 'en')
DEFAULT_LANGUAGE = 'ar'
RTL_LANGUAGES = {'ar'}

LANGUAGE_NAMES = {
    'ar': 'العربية',
    'en': 'English',
}


TRANSLATIONS = {
    'en': {
        'app.title': 'Fixed Asset Register',
        'common.year': 'years',
        'common.save': 'Save',
        'common.cancel': 'Cancel',
        'common.edit': 'Edit',
        'common.delete': 'Delete',
        'common.confirmDelete': 'Delete this asset?',
        'common.total': 'Total',

        'nav.assets': 'Assets',
        'nav.report': 'Annual report',
        'nav.settings': 'Settings',
        'nav.logout': 'Log out',

        'auth.login': 'Log in',
        'auth.username': 'Username',
        'auth.password': 'Password',
        'auth.invalid': 'Invalid username or password.',
        'auth.loggedOut': 'You have been logged out.',
        'auth.required': 'Please log in.',

        'method.straight-line': 'Straight-line',
        'method.double-declining': 'Double-declining balance',

        'assets.title': 'Fixed assets',
        'assets.add': 'Add asset',
        'assets.edit': 'Edit asset',
        'assets.none': 'No assets recorded yet.',
        'assets.created': 'Asset "{0}" was created.',
        'assets.updated': 'Asset "{0}" was updated.',
        'assets.deleted': 'Asset "{0}" was deleted.',
        'assets.notFound': 'Asset {0} not found.',
        'assets.totalCost': 'Total cost',
        'assets.totalBookValue': 'Total book value',

        'form.name': 'Asset name',
        'form.description': 'Description',
        'form.purchaseDate': 'Purchase date',
        'form.cost': 'Cost',
        'form.salvageValue': 'Salvage value',
        'form.usefulLife': 'Useful life (years)',
        'form.depreciationMethod': 'Depreciation method',
        'form.notes': 'Notes',
        'form.invalidNumber': 'Please enter valid numbers.',

        'table.name': 'Name',
        'table.cost': 'Cost',
        'table.purchaseDate': 'Purchase date',
        'table.method': 'Method',
        'table.life': 'Useful life',
        'table.bookValue': 'Book value',
        'table.actions': 'Actions',

        'schedule.title': 'Depreciation schedule',
        'schedule.year': 'Year',
        'schedule.depreciation': 'Depreciation',
        'schedule.accumulated': 'Accumulated depreciation',
        'schedule.bookValue': 'Book value',
        'schedule.empty': 'No schedule: the useful life must be at least one year.',
        'schedule.export': 'Export to Excel',
        'schedule.exportPdf': 'Export to PDF',

        'report.title': 'Annual depreciation report',
        'report.year': 'Year',
        'report.generate': 'Generate report',
        'report.depreciationForYear': 'Depreciation for the year',
        'report.bookValue': 'Book value at year end',
        'report.total': 'Total depreciation for {0}',
        'report.export': 'Export report',
        'report.exportPdf': 'Export report to PDF',

        'settings.title': 'Settings',
        'settings.businessName': 'Business name',
        'settings.language': 'Language',
        'settings.currency': 'Currency',
        'settings.saved': 'Settings saved.',

        'validation.nameRequired': 'The asset name is required.',
        'validation.costPositive': 'The cost must be greater than zero.',
        'validation.salvageNegative': 'The salvage value cannot be negative.',
        'validation.salvageAboveCost': 'The salvage value cannot exceed the cost.',
        'validation.lifeInvalid': 'The useful life must be a whole number of at least one year.',
        'validation.methodInvalid': 'Unknown depreciation method.',
        'validation.dateRequired': 'The purchase date is required.',
        'validation.amountNotFinite': 'Cost and salvage value must be finite numbers.',

        'export.scheduleFile': 'Depreciation-Schedule-{0}',
        'export.reportFile': 'Annual-Depreciation-Report-{0}',
        'export.generatedBy': 'Generated by {0}',
    },

    'ar': {
        'app.title': 'سجل الأصول الثابتة',
        'common.year': 'سنوات',
        'common.save': 'حفظ',
        'common.cancel': 'إلغاء',
        'common.edit': 'تعديل',
        'common.delete': 'حذف',
        'common.confirmDelete': 'هل تريد حذف هذا الأصل؟',
        'common.total': 'الإجمالي',

        'nav.assets': 'الأصول',
        'nav.report': 'التقرير السنوي',
        'nav.settings': 'الإعدادات',
        'nav.logout': 'تسجيل الخروج',

        'auth.login': 'تسجيل الدخول',
        'auth.username': 'اسم المستخدم',
        'auth.password': 'كلمة المرور',
        'auth.invalid': 'اسم المستخدم أو كلمة المرور غير صحيحة.',
        'auth.loggedOut': 'تم تسجيل الخروج.',
        'auth.required': 'يرجى تسجيل الدخول.',

        'method.straight-line': 'القسط الثابت',
        'method.double-declining': 'القسط المتناقص المضاعف',

        'assets.title': 'الأصول الثابتة',
        'assets.add': 'إضافة أصل',
        'assets.edit': 'تعديل الأصل',
        'assets.none': 'لا توجد أصول مسجلة بعد.',
        'assets.created': 'تمت إضافة الأصل "{0}".',
        'assets.updated': 'تم تحديث الأصل "{0}".',
        'assets.deleted': 'تم حذف الأصل "{0}".',
        'assets.notFound': 'الأصل {0} غير موجود.',
        'assets.totalCost': 'إجمالي التكلفة',
        'assets.totalBookValue': 'إجمالي القيمة الدفترية',

        'form.name': 'اسم الأصل',
        'form.description': 'الوصف',
        'form.purchaseDate': 'تاريخ الشراء',
        'form.cost': 'التكلفة',
        'form.salvageValue': 'قيمة الخردة',
        'form.usefulLife': 'العمر الإنتاجي (سنوات)',
        'form.depreciationMethod': 'طريقة الإهلاك',
        'form.notes': 'ملاحظات',
        'form.invalidNumber': 'يرجى إدخال أرقام صحيحة.',

        'table.name': 'الاسم',
        'table.cost': 'التكلفة',
        'table.purchaseDate': 'تاريخ الشراء',
        'table.method': 'الطريقة',
        'table.life': 'العمر الإنتاجي',
        'table.bookValue': 'القيمة الدفترية',
        'table.actions': 'الإجراءات',

        'schedule.title': 'جدول الإهلاك',
        'schedule.year': 'السنة',
        'schedule.depreciation': 'الإهلاك',
        'schedule.accumulated': 'مجمع الإهلاك',
        'schedule.bookValue': 'القيمة الدفترية',
        'schedule.empty': 'لا يوجد جدول: يجب ألا يقل العمر الإنتاجي عن سنة واحدة.',
        'schedule.export': 'تصدير إلى Excel',
        'schedule.exportPdf': 'تصدير إلى PDF',

        'report.title': 'تقرير الإهلاك السنوي',
        'report.year': 'السنة',
        'report.generate': 'إنشاء التقرير',
        'report.depreciationForYear': 'إهلاك السنة',
        'report.bookValue': 'القيمة الدفترية في نهاية السنة',
        'report.total': 'إجمالي الإهلاك لسنة {0}',
        'report.export': 'تصدير التقرير',
        'report.exportPdf': 'تصدير التقرير إلى PDF',

        'settings.title': 'الإعدادات',
        'settings.businessName': 'اسم المنشأة',
        'settings.language': 'اللغة',
        'settings.currency': 'العملة',
        'settings.saved': 'تم حفظ الإعدادات.',

        'validation.nameRequired': 'اسم الأصل مطلوب.',
        'validation.costPositive': 'يجب أن تكون التكلفة أكبر من صفر.',
        'validation.salvageNegative': 'لا يمكن أن تكون قيمة الخردة سالبة.',
        'validation.salvageAboveCost': 'لا يمكن أن تتجاوز قيمة الخردة التكلفة.',
        'validation.lifeInvalid': 'يجب أن يكون العمر الإنتاجي عددًا صحيحًا لا يقل عن سنة.',
        'validation.methodInvalid': 'طريقة إهلاك غير معروفة.',
        'validation.dateRequired': 'تاريخ الشراء مطلوب.',
        'validation.amountNotFinite': 'يجب أن تكون التكلفة وقيمة الخردة أرقامًا محدودة.',

        'export.scheduleFile': 'جدول-الإهلاك-{0}',
        'export.reportFile': 'تقرير-الإهلاك-السنوي-{0}',
        'export.generatedBy': 'تم الإنشاء بواسطة {0}',
    },
}


def normalize_language(language):
    """Return a supported language code, falling back to the default."""
    if language:
        language = language.split('-')[0].lower()
        if language in SUPPORTED_LANGUAGES:
            return language
    return DEFAULT_LANGUAGE


def current_language():
    """Language for this request: session choice, then site settings."""
    from flask import has_request_context, session
    from models import SiteSettings

    if has_request_context():
        chosen = session.get('language')
        if chosen in SUPPORTED_LANGUAGES:
            return chosen
    return normalize_language(SiteSettings.get_settings().language)


def translate(key, language=DEFAULT_LANGUAGE, *args):
    """Translate a key: current language, then English, then the key."""
    table = TRANSLATIONS.get(language, {})
    text = table.get(key) or TRANSLATIONS['en'].get(key) or str(key)
    for index, arg in enumerate(args):
        text = text.replace('{%d}' % index, str(arg))
    return text


def get_translator(language):
    """Bind translate() to one language, e.g. for templates and exports."""
    def t(key, *args):
        return translate(key, language, *args)
    return t


def is_rtl(language):
    return language in RTL_LANGUAGES
