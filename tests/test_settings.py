from caportal.extensions import db
from caportal.models import SiteSetting, OutboundEmail, ContactSubmission
from caportal.services.mail_service import MailService
from caportal.services.settings_service import SettingsService, MASK
from caportal.utils.crypto import SettingsCipher

SMTP = {
    'host': 'smtp.example.com',
    'port': '465',
    'user': 'mailer@ca.example.com',
    'password': 's3cret-app-password',
    'fromName': 'CA Office',
    'notificationEmail': 'partners@ca.example.com',
}


def stored(app, key):
    with app.app_context():
        return SiteSetting.query.filter_by(key=key).one()


class TestSmtpSettings:

    def test_defaults(self, admin_client):
        settings = admin_client.get('/api/admin/settings/smtp').get_json()
        assert settings['host'] == 'smtp.gmail.com'
        assert settings['port'] == 587
        assert settings['password'] == ''
        assert settings['configured'] is False
        assert settings['notificationEmail'] == 'office@ca.example.com'

    def test_save_masks_and_encrypts(self, app, admin_client):
        resp = admin_client.put('/api/admin/settings/smtp', json=SMTP)
        settings = resp.get_json()['settings']
        assert settings['password'] == MASK
        assert settings['port'] == 465
        assert settings['configured'] is True

        row = stored(app, 'smtp_pass')
        assert row.is_encrypted is True
        assert row.value != SMTP['password']
        with app.app_context():
            assert SettingsCipher().decrypt(row.value) == SMTP['password']
        assert stored(app, 'smtp_host').is_encrypted is False

    def test_masked_or_empty_password_keeps_secret(self, app, admin_client):
        admin_client.put('/api/admin/settings/smtp', json=SMTP)
        admin_client.put('/api/admin/settings/smtp', json=dict(SMTP, password=MASK, host='smtp2.example.com'))
        admin_client.put('/api/admin/settings/smtp', json=dict(SMTP, password=''))

        with app.app_context():
            smtp = SettingsService.get_smtp(masked=False)
        assert smtp['password'] == SMTP['password']
        assert smtp['host'] == 'smtp.example.com'

    def test_cache_invalidated_on_save(self, ctx):
        assert SettingsService.get_smtp()['host'] == 'smtp.gmail.com'
        SettingsService.save_smtp({'host': 'mail.example.com'})
        assert SettingsService.get_smtp()['host'] == 'mail.example.com'

    def test_notification_email_routes_contact_mail(self, app, client, admin_client):
        admin_client.put('/api/admin/settings/smtp', json=SMTP)
        with app.test_request_context():
            submission = ContactSubmission(name='A', email='a@example.com', message='Hi', service='Audit')
            MailService.send_contact_notification(submission)
            assert OutboundEmail.query.filter_by(category='contact').one().recipient == 'partners@ca.example.com'

    def test_key_change_degrades_to_empty(self, app, admin_client):
        admin_client.put('/api/admin/settings/smtp', json=SMTP)
        app.config['SETTINGS_ENCRYPTION_KEY'] = 'rotated'
        with app.app_context():
            assert SettingsService.get('smtp_pass') == ''


class TestTestEmail:

    def test_sends_to_outbox(self, app, admin_client):
        resp = admin_client.post('/api/admin/settings/smtp/test', json={'email': 'me@example.com'})
        assert resp.status_code == 200
        assert resp.get_json()['message'] == 'Test email sent to me@example.com'
        with app.app_context():
            assert OutboundEmail.query.filter_by(category='test').one().recipient == 'me@example.com'

    def test_invalid_recipient(self, admin_client):
        resp = admin_client.post('/api/admin/settings/smtp/test', json={'email': 'nope'})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Invalid email format'

        resp = admin_client.post('/api/admin/settings/smtp/test', json={})
        assert resp.get_json()['error'] == 'Recipient email is required'


class TestSocialSettings:

    def test_secrets_masked(self, app, admin_client):
        resp = admin_client.put('/api/admin/settings/social', json={
            'twitter': {'enabled': True, 'apiKey': 'public-key', 'apiSecret': 'api-secret'},
            'facebook': {'enabled': 'false', 'pageAccessToken': 'page-token', 'pageId': '1234'},
        })
        settings = resp.get_json()['settings']
        assert settings['twitter']['enabled'] is True
        assert settings['twitter']['apiKey'] == 'public-key'
        assert settings['twitter']['apiSecret'] == MASK
        assert settings['twitter']['accessToken'] == ''
        assert settings['facebook']['enabled'] is False
        assert settings['facebook']['pageAccessToken'] == MASK
        assert settings['instagram']['pageAccessToken'] == MASK

        assert stored(app, 'social_twitter_api_secret').is_encrypted is True
        assert stored(app, 'social_facebook_page_id').value == '1234'

    def test_instagram_borrows_facebook_token(self, ctx):
        SettingsService.save_social({'facebook': {'pageAccessToken': 'page-token'},
                                     'instagram': {'instagramAccountId': '17841400000'}})
        social = SettingsService.get_social(masked=False)
        assert social['instagram'] == {
            'enabled': False,
            'instagramAccountId': '17841400000',
            'pageAccessToken': 'page-token',
        }

    def test_non_dict_sections_ignored(self, ctx):
        SettingsService.save_social({'twitter': 'on'})
        assert SiteSetting.query.count() == 0

    def test_requires_admin(self, staff_client):
        assert staff_client.get('/api/admin/settings/social').status_code == 403


def test_set_and_get_roundtrip(ctx):
    SettingsService.set('smtp_pass', 'value', encrypted=True)
    db.session.commit()
    assert SettingsService.get('smtp_pass') == 'value'
    assert SettingsService.get('missing', 'fallback') == 'fallback'
