import pytest

from caportal.utils.crypto import SettingsCipher
from caportal.utils.security import client_ip

OTP_REQUEST = {'email': 'visitor@example.com', 'name': 'Visitor', 'purpose': 'contact'}


class TestRateLimit:

    def test_sixth_otp_request_is_refused(self, app, client):
        app.config['RATELIMIT_ENABLED'] = True
        for _ in range(5):
            assert client.post('/api/otp/send', json=OTP_REQUEST).status_code == 200

        resp = client.post('/api/otp/send', json=OTP_REQUEST)
        assert resp.status_code == 429
        body = resp.get_json()
        assert body['success'] is False
        assert 1 <= body['retryAfter'] <= 61

    def test_counted_per_client_ip(self, app, client):
        app.config['RATELIMIT_ENABLED'] = True
        for _ in range(5):
            client.post('/api/otp/send', json=OTP_REQUEST, headers={'X-Forwarded-For': '10.0.0.1'})
        other = client.post('/api/otp/send', json=OTP_REQUEST, headers={'X-Forwarded-For': '10.0.0.2'})
        assert other.status_code == 200

    def test_disabled_in_testing(self, client):
        for _ in range(7):
            assert client.post('/api/otp/send', json=OTP_REQUEST).status_code == 200


@pytest.mark.parametrize('headers, expected', [
    ({'X-Forwarded-For': '203.0.113.7, 10.0.0.1'}, '203.0.113.7'),
    ({'X-Real-IP': '198.51.100.4'}, '198.51.100.4'),
    ({}, '127.0.0.1'),
])
def test_client_ip(app, headers, expected):
    with app.test_request_context('/', headers=headers, environ_base={'REMOTE_ADDR': '127.0.0.1'}):
        assert client_ip() == expected


class TestSettingsCipher:

    def test_round_trip(self, ctx):
        cipher = SettingsCipher()
        token = cipher.encrypt('smtp-password')
        assert token != 'smtp-password'
        assert cipher.decrypt(token) == 'smtp-password'

    def test_empty_values(self, ctx):
        assert SettingsCipher().encrypt('') == ''
        assert SettingsCipher().decrypt('') == ''

    def test_other_key_cannot_read(self, ctx):
        token = SettingsCipher('one').encrypt('secret')
        assert SettingsCipher('two').decrypt(token) == ''


def test_errors_are_json(client):
    resp = client.get('/no/such/page')
    assert resp.status_code == 404
    assert resp.get_json()['success'] is False


def test_robots(client):
    body = client.get('/robots.txt').get_data(as_text=True)
    assert 'Disallow: /api/' in body
    assert 'Sitemap: https://ca.example.com/sitemap.xml' in body
