from datetime import date
from flask import jsonify, current_app, send_from_directory, Response
from caportal.blueprints.main import main_bp
from caportal.exceptions import NotFound
from caportal.models import BlogPost, Tool, Article
from caportal.services.gst_service import RCM_CATEGORIES, FFMC_CURRENCIES
from caportal.services.tax_service import TDS_CATEGORIES, FINANCIAL_YEARS
from caportal.utils.file_helper import upload_path, RESOURCES_DIR

SERVICES = [
    {'slug': 'income-tax', 'name': 'Income Tax'},
    {'slug': 'company-audit', 'name': 'Company Audit'},
    {'slug': 'gst-services', 'name': 'GST Services'},
    {'slug': 'ffmc-compliance', 'name': 'FFMC Compliance'},
    {'slug': 'ai-automation', 'name': 'AI & Automation'},
    {'slug': 'other-services', 'name': 'Other Services'},
]

CALCULATORS = [
    'income-tax', 'advance-tax', 'tds', 'capital-gains', 'emi',
    'gst', 'gst-composition', 'gst-interest', 'gst-rcm', 'gst-tcs', 'gst-ffmc',
]

LEGAL_PAGES = {
    'privacy-policy': 'Privacy Policy',
    'terms-of-use': 'Terms of Use',
    'disclaimer': 'Disclaimer',
    'cookie-policy': 'Cookie Policy',
}

STATIC_PAGES = [
    '', '/about', '/contact', '/faq', '/services', '/resources', '/resources/blog',
    '/resources/articles', '/resources/calculators', '/resources/downloads', '/tools',
] + [f"/services/{s['slug']}" for s in SERVICES] \
  + [f'/resources/calculators/{c}' for c in CALCULATORS] \
  + [f'/{p}' for p in LEGAL_PAGES]


@main_bp.route('/')
def index():
    """Site information"""
    cfg = current_app.config
    return jsonify({
        'name': cfg['SITE_NAME'],
        'url': cfg['SITE_URL'],
        'email': cfg['FIRM_EMAIL'],
        'services': SERVICES,
        'calculators': CALCULATORS,
        'financialYears': list(FINANCIAL_YEARS),
        'tdsCategories': {k: {'name': v['name'], 'section': v['section'], 'rate': v['rate']}
                          for k, v in TDS_CATEGORIES.items()},
        'rcmCategories': RCM_CATEGORIES,
        'ffmcCurrencies': list(FFMC_CURRENCIES),
        'legal': [{'slug': k, 'title': v} for k, v in LEGAL_PAGES.items()],
    })


@main_bp.route('/legal/<slug>')
def legal(slug):
    title = LEGAL_PAGES.get(slug)
    if title is None:
        raise NotFound('Page not found')
    cfg = current_app.config
    return jsonify({
        'slug': slug,
        'title': title,
        'owner': cfg['SITE_NAME'],
        'contact': cfg['FIRM_EMAIL'],
        'url': f"{cfg['SITE_URL'].rstrip('/')}/{slug}",
    })


@main_bp.route('/robots.txt')
def robots():
    site_url = current_app.config['SITE_URL'].rstrip('/')
    body = '\n'.join([
        'User-agent: *',
        'Allow: /',
        'Disallow: /api/',
        'Disallow: /auth/',
        f'Sitemap: {site_url}/sitemap.xml',
        '',
    ])
    return Response(body, mimetype='text/plain')


@main_bp.route('/sitemap.xml')
def sitemap():
    site_url = current_app.config['SITE_URL'].rstrip('/')
    today = date.today().isoformat()
    urls = [(f'{site_url}{path}', today, '1.0' if path == '' else '0.8') for path in STATIC_PAGES]

    for post in BlogPost.query.filter_by(is_published=True, is_deleted=False):
        lastmod = (post.updated_at or post.created_at).date().isoformat()
        urls.append((f'{site_url}/resources/blog/{post.slug}', lastmod, '0.7'))
    for article in Article.query.filter_by(is_active=True, is_deleted=False):
        if article.slug:
            urls.append((f'{site_url}/resources/articles/{article.slug}', today, '0.6'))
    for tool in Tool.query.filter_by(is_active=True, is_deleted=False):
        urls.append((f'{site_url}/tools/{tool.slug}', today, '0.6'))

    entries = ''.join(
        f'<url><loc>{loc}</loc><lastmod>{mod}</lastmod><priority>{prio}</priority></url>'
        for loc, mod, prio in urls
    )
    xml = ('<?xml version="1.0" encoding="UTF-8"?>'
           f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>')
    return Response(xml, mimetype='application/xml')


@main_bp.route(f'/uploads/{RESOURCES_DIR}/<path:filename>')
def public_file(filename):
    """Article / download files; client documents are never served here"""
    folder = upload_path(RESOURCES_DIR)
    return send_from_directory(folder, filename, as_attachment=True)
