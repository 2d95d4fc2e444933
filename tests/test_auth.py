import re
from datetime import date

from caportal.extensions import db
from caportal.models import User, OutboundEmail, AuditLog
from caportal.services.user_service import UserService, generate_login_id, unique_login_id
from conftest import PASSWORD, login, make_user


def reset_link_token(app, email):
    with app.app_context():
        html = OutboundEmail.query.filter_by(category='password_reset', recipient=email) \
            .order_by(OutboundEmail.id.desc()).first().html
    return re.search(r'token=([\w.\-]+)', html).group(1)


class TestLogin:

    def test_login_me_logout(self, app, client, client_id):
        resp = login(client, 'ravi25')
        assert resp.status_code == 200
        user = resp.get_json()['user']
        assert user['loginId'] == 'ravi25'
        assert 'passwordHash' not in user

        assert client.get('/auth/me').get_json()['id'] == client_id
        assert client.post('/auth/logout').status_code == 200
        assert client.get('/auth/me').status_code == 401

        with app.app_context():
            actions = [log.action for log in AuditLog.query.order_by(AuditLog.id)]
        assert actions == ['login_success', 'logout']

    def test_login_id_is_case_insensitive(self, client, client_id):
        assert login(client, '  RAVI25 ').status_code == 200

    def test_login_by_email(self, client, client_id):
        assert login(client, 'ravi@example.com').status_code == 200

    def test_missing_fields(self, client):
        resp = client.post('/auth/login', json={'loginId': 'ravi25'})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Login ID and password are required'

    def test_unknown_user(self, client):
        resp = login(client, 'nobody')
        assert resp.status_code == 401
        assert resp.get_json()['error'] == 'Invalid credentials'

    def test_remaining_attempts_and_lockout(self, app, client, client_id):
        for remaining in (4, 3, 2, 1, 0):
            resp = login(client, 'ravi25', 'wrong-password')
            assert resp.status_code == 401
            assert resp.get_json()['remainingAttempts'] == remaining

        # Locked even with the right password
        resp = login(client, 'ravi25')
        assert resp.status_code == 403
        assert 'locked' in resp.get_json()['error']

        with app.app_context():
            user = db.session.get(User, client_id)
            user.locked_until = None
            db.session.commit()
        assert login(client, 'ravi25').status_code == 200
        with app.app_context():
            assert db.session.get(User, client_id).failed_login_attempts == 0

    def test_deactivated_account(self, app, client, client_id):
        with app.app_context():
            db.session.get(User, client_id).is_active_user = False
            db.session.commit()
        resp = login(client, 'ravi25')
        assert resp.status_code == 403
        assert 'deactivated' in resp.get_json()['error']

    def test_shared_email_needs_account_choice(self, app, client):
        first = make_user(app, 'mehu12', email='family@example.com', name='Mehul')
        second = make_user(app, 'neha03', email='family@example.com', name='Neha')

        resp = login(client, 'family@example.com')
        assert resp.status_code == 409
        accounts = resp.get_json()['accounts']
        assert [a['loginId'] for a in accounts] == ['mehu12', 'neha03']

        resp = login(client, 'family@example.com', accountId=second)
        assert resp.status_code == 200
        assert resp.get_json()['user']['id'] == second
        assert first != second

    def test_csrf_token_endpoint(self, client):
        assert client.get('/auth/csrf-token').get_json()['csrfToken']


class TestPasswords:

    def test_change_password(self, client, portal_client):
        resp = portal_client.post('/auth/change-password', json={
            'currentPassword': 'nope-nope', 'newPassword': 'NewPassword1'
        })
        assert resp.get_json()['error'] == 'Current password is incorrect'

        resp = portal_client.post('/auth/change-password', json={
            'currentPassword': PASSWORD, 'newPassword': 'short'
        })
        assert resp.get_json()['error'] == 'Password must be at least 8 characters'

        resp = portal_client.post('/auth/change-password', json={
            'currentPassword': PASSWORD, 'newPassword': 'NewPassword1'
        })
        assert resp.status_code == 200
        assert login(client, 'ravi25').status_code == 401
        assert login(client, 'ravi25', 'NewPassword1').status_code == 200

    def test_forgot_password_reply_is_generic(self, app, client):
        resp = client.post('/auth/forgot-password', json={'loginId': 'ghost'})
        assert resp.status_code == 200
        with app.app_context():
            assert OutboundEmail.query.count() == 0

    def test_reset_flow(self, app, client, client_id):
        client.post('/auth/forgot-password', json={'loginId': 'ravi25'})
        token = reset_link_token(app, 'ravi@example.com')
        with app.app_context():
            html = OutboundEmail.query.filter_by(category='password_reset').one().html
        assert 'https://ca.example.com/reset-password?token=' in html
        assert 'ravi25' in html

        resp = client.post('/auth/reset-password', json={'token': token, 'password': 'BrandNew123'})
        assert resp.status_code == 200
        assert login(client, 'ravi25', 'BrandNew123').status_code == 200

        # The link dies with the old password
        resp = client.post('/auth/reset-password', json={'token': token, 'password': 'Another123'})
        assert resp.get_json()['error'] == 'Invalid reset link'

    def test_reset_with_garbage_token(self, client):
        resp = client.post('/auth/reset-password', json={'token': 'abc', 'password': 'BrandNew123'})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'Invalid reset link'

    def test_reset_token_clears_lockout(self, ctx, client_id):
        user = db.session.get(User, client_id)
        user.failed_login_attempts = 5
        db.session.commit()
        UserService.reset_password(UserService.reset_token(user), 'BrandNew123')
        assert db.session.get(User, client_id).failed_login_attempts == 0


class TestLoginIds:

    def test_generated_from_name_and_day(self):
        assert generate_login_id('Himanshu Majithiya', date(1980, 4, 25)) == 'hima25'
        assert generate_login_id("O'Neil", date(1990, 1, 3)) == 'onei03'

    def test_suffix_on_collision(self, ctx):
        assert unique_login_id('hima25') == 'hima25'
        db.session.add(User(login_id='hima25', name='H'))
        db.session.add(User(login_id='hima251', name='H'))
        db.session.commit()
        assert unique_login_id('hima25') == 'hima252'


class TestUserAdmin:

    def test_create_clients(self, admin_client):
        payload = {'name': 'Himanshu Majithiya', 'dateOfBirth': '1980-04-25', 'email': 'hm@example.com'}
        first = admin_client.post('/api/admin/users', json=payload)
        assert first.status_code == 201
        assert first.get_json()['loginId'] == 'hima25'
        assert first.get_json()['role'] == 'CLIENT'

        second = admin_client.post('/api/admin/users', json=dict(payload, name='Himanshi Majithiya'))
        assert second.get_json()['loginId'] == 'hima251'

    def test_client_needs_name_and_birth_date(self, admin_client):
        resp = admin_client.post('/api/admin/users', json={'name': 'No Date'})
        assert resp.get_json()['error'] == 'Name and Date of Birth/Incorporation are required for clients'

    def test_staff_logs_in_with_email(self, client, admin_client):
        resp = admin_client.post('/api/admin/users', json={'role': 'staff', 'name': 'Clerk'})
        assert resp.get_json()['error'] == 'Email is required for admin users'

        resp = admin_client.post('/api/admin/users', json={
            'role': 'staff', 'name': 'Clerk', 'email': 'Clerk@CA.example.com', 'password': 'ClerkPass1'
        })
        assert resp.get_json()['loginId'] == 'clerk@ca.example.com'
        assert login(client, 'clerk@ca.example.com', 'ClerkPass1').status_code == 200

        dup = admin_client.post('/api/admin/users', json={'role': 'staff', 'email': 'clerk@ca.example.com'})
        assert dup.status_code == 409

    def test_groups(self, admin_client):
        resp = admin_client.post('/api/admin/users', json={
            'name': 'Kiran Shah', 'dateOfBirth': '1975-09-09', 'newGroupName': 'Shah Family'
        })
        user = resp.get_json()
        assert user['group']['name'] == 'Shah Family'

        groups = admin_client.get('/api/admin/groups').get_json()
        assert [(g['name'], g['memberCount']) for g in groups] == [('Shah Family', 1)]

        resp = admin_client.put(f"/api/admin/users/{user['id']}", json={'groupId': None})
        assert resp.get_json()['group'] is None

    def test_update_and_reset_password(self, client, admin_client, client_id):
        resp = admin_client.put(f'/api/admin/users/{client_id}', json={
            'phone': '9820000000', 'password': 'Changed123'
        })
        assert resp.get_json()['phone'] == '9820000000'
        assert login(client, 'ravi25', 'Changed123').status_code == 200

        admin_client.put(f'/api/admin/users/{client_id}', json={'resetPassword': True})
        assert login(client, 'ravi25', PASSWORD).status_code == 200

    def test_list_by_role(self, admin_client, client_id, staff_id):
        clients = admin_client.get('/api/admin/users?role=client').get_json()
        assert [u['id'] for u in clients] == [client_id]

    def test_delete(self, admin_client, admin_id, client_id):
        resp = admin_client.delete(f'/api/admin/users/{admin_id}')
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'You cannot delete your own account'

        assert admin_client.delete(f'/api/admin/users/{client_id}').status_code == 200
        assert admin_client.get(f'/api/admin/users/{client_id}').status_code == 404

    def test_staff_cannot_manage_users(self, staff_client):
        assert staff_client.get('/api/admin/users').status_code == 403
