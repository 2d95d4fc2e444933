from datetime import datetime, timedelta

from caportal.extensions import db
from caportal.models import EmailVerification, ContactSubmission, OutboundEmail

CONTACT = {
    'name': 'Priya Nair',
    'email': 'Priya@Example.com',
    'phone': '+91 98765 43210',
    'subject': 'GST registration',
    'message': 'Please call me about GST registration.',
}


def pending_otp(app, email='priya@example.com'):
    with app.app_context():
        record = EmailVerification.query.filter_by(email=email, verified=False).first()
        return record.otp if record else None


def send_and_verify(client, app):
    assert client.post('/api/otp/send', json={
        'email': CONTACT['email'], 'name': CONTACT['name'], 'purpose': 'contact'
    }).status_code == 200
    resp = client.post('/api/otp/verify', json={
        'email': CONTACT['email'], 'otp': pending_otp(app), 'purpose': 'contact'
    })
    assert resp.status_code == 200
    assert resp.get_json()['verified'] is True


def test_otp_is_mailed(client, app):
    resp = client.post('/api/otp/send', json={
        'email': 'priya@example.com', 'name': 'Priya', 'purpose': 'contact'
    })
    assert resp.status_code == 200
    otp = pending_otp(app)
    assert otp is not None and len(otp) == 6 and otp.isdigit()
    with app.app_context():
        mail = OutboundEmail.query.filter_by(category='otp').one()
        assert mail.recipient == 'priya@example.com'
        assert otp in mail.html


def test_new_otp_replaces_pending_one(client, app):
    for _ in range(2):
        client.post('/api/otp/send', json={'email': 'priya@example.com', 'name': 'P', 'purpose': 'contact'})
    with app.app_context():
        assert EmailVerification.query.filter_by(email='priya@example.com').count() == 1


def test_otp_send_validation(client):
    resp = client.post('/api/otp/send', json={'email': 'priya@example.com', 'purpose': 'contact'})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Email, name, and purpose are required'

    resp = client.post('/api/otp/send', json={'email': 'priya@example.com', 'name': 'P', 'purpose': 'newsletter'})
    assert resp.get_json()['error'] == 'Invalid purpose'

    resp = client.post('/api/otp/send', json={'email': 'not-an-email', 'name': 'P', 'purpose': 'contact'})
    assert resp.get_json()['error'] == 'Invalid email format'


def test_wrong_otp(client, app):
    client.post('/api/otp/send', json={'email': 'priya@example.com', 'name': 'P', 'purpose': 'contact'})
    wrong = '000000' if pending_otp(app) != '000000' else '111111'
    resp = client.post('/api/otp/verify', json={'email': 'priya@example.com', 'otp': wrong, 'purpose': 'contact'})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Invalid OTP. Please try again.'


def test_numeric_otp_is_accepted(client, app):
    client.post('/api/otp/send', json={'email': 'priya@example.com', 'name': 'P', 'purpose': 'contact'})
    with app.app_context():
        EmailVerification.query.first().otp = '482913'
        db.session.commit()
    resp = client.post('/api/otp/verify', json={'email': 'priya@example.com', 'otp': 482913, 'purpose': 'contact'})
    assert resp.status_code == 200
    assert resp.get_json()['verified'] is True


def test_numeric_wrong_otp_is_a_bad_request(client, app):
    client.post('/api/otp/send', json={'email': 'priya@example.com', 'name': 'P', 'purpose': 'contact'})
    wrong = 111111 if pending_otp(app) != '111111' else 222222
    resp = client.post('/api/otp/verify', json={'email': 'priya@example.com', 'otp': wrong, 'purpose': 'contact'})
    assert resp.status_code == 400


def test_expired_otp(client, app):
    client.post('/api/otp/send', json={'email': 'priya@example.com', 'name': 'P', 'purpose': 'contact'})
    with app.app_context():
        record = EmailVerification.query.first()
        record.otp_expiry = datetime.utcnow() - timedelta(minutes=1)
        db.session.commit()
        otp = record.otp
    resp = client.post('/api/otp/verify', json={'email': 'priya@example.com', 'otp': otp, 'purpose': 'contact'})
    assert resp.get_json()['error'] == 'OTP has expired. Please request a new one.'


def test_verify_without_pending_code(client):
    resp = client.post('/api/otp/verify', json={'email': 'x@example.com', 'otp': '123456', 'purpose': 'contact'})
    assert resp.status_code == 400
    assert 'No pending verification' in resp.get_json()['error']


def test_contact_requires_verified_email(client):
    resp = client.post('/api/contact', json=CONTACT)
    assert resp.status_code == 403
    assert resp.get_json()['error'] == 'Please verify your email address before submitting.'


def test_contact_missing_fields(client):
    resp = client.post('/api/contact', json=dict(CONTACT, message=''))
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'All fields are required'


def test_numeric_phone_is_accepted(client, app):
    send_and_verify(client, app)
    resp = client.post('/api/contact', json=dict(CONTACT, phone=9876543210))
    assert resp.status_code == 200
    with app.app_context():
        assert db.session.get(ContactSubmission, resp.get_json()['contactId']).phone == '9876543210'


def test_numeric_short_phone_is_rejected(client, app):
    send_and_verify(client, app)
    resp = client.post('/api/contact', json=dict(CONTACT, phone=12345))
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Please enter a valid phone number'


def test_contact_after_verification(client, app):
    send_and_verify(client, app)
    resp = client.post('/api/contact', json=CONTACT)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['success'] is True

    with app.app_context():
        submission = db.session.get(ContactSubmission, body['contactId'])
        assert submission.email == 'priya@example.com'
        assert submission.service == 'GST registration'
        assert submission.is_read is False

        notification = OutboundEmail.query.filter_by(category='contact').one()
        assert notification.recipient == 'office@ca.example.com'
        assert notification.reply_to == 'priya@example.com'
        assert OutboundEmail.query.filter_by(category='auto_reply', recipient='priya@example.com').count() == 1
        # The verification is single use
        assert EmailVerification.query.count() == 0

    assert client.post('/api/contact', json=CONTACT).status_code == 403


def test_contact_html_is_escaped(client, app):
    send_and_verify(client, app)
    client.post('/api/contact', json=dict(CONTACT, message='<script>alert(1)</script>'))
    with app.app_context():
        html = OutboundEmail.query.filter_by(category='contact').one().html
        assert '<script>' not in html
        assert '&lt;script&gt;' in html


def test_admin_manages_contacts(client, app, admin_client):
    send_and_verify(client, app)
    contact_id = client.post('/api/contact', json=CONTACT).get_json()['contactId']

    unread = admin_client.get('/api/admin/contacts?unread=1').get_json()
    assert [c['id'] for c in unread] == [contact_id]

    resp = admin_client.put(f'/api/admin/contacts/{contact_id}', json={'isRead': True})
    assert resp.get_json()['isRead'] is True
    assert admin_client.get('/api/admin/contacts?unread=1').get_json() == []

    assert admin_client.delete(f'/api/admin/contacts/{contact_id}').status_code == 200
    assert admin_client.get('/api/admin/contacts').get_json() == []
