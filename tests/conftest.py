import io
from datetime import date

import pytest

from caportal import create_app
from caportal.extensions import db
from caportal.models import User
from caportal.models.auth import ROLE_ADMIN, ROLE_STAFF, ROLE_CLIENT

PASSWORD = 'Password123'


@pytest.fixture
def app(tmp_path):
    app = create_app('testing')
    app.config.update(
        UPLOAD_FOLDER=str(tmp_path / 'uploads'),
        SITE_URL='https://ca.example.com',
        FIRM_EMAIL='office@ca.example.com',
    )
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """App context for service-level tests (no HTTP requests inside)"""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(app, login_id, role=ROLE_CLIENT, email=None, name=None, password=PASSWORD, **extra):
    with app.app_context():
        user = User(
            login_id=login_id,
            email=email,
            name=name or login_id,
            role=role,
            date_of_birth=extra.pop('date_of_birth', date(1990, 4, 25)),
            is_active_user=True,
            **extra
        )
        user.password = password
        db.session.add(user)
        db.session.commit()
        return user.id


def login(client, login_id, password=PASSWORD, **extra):
    return client.post('/auth/login', json=dict(loginId=login_id, password=password, **extra))


@pytest.fixture
def admin_id(app):
    return make_user(app, 'admin@ca.example.com', role=ROLE_ADMIN,
                     email='admin@ca.example.com', name='Admin')


@pytest.fixture
def staff_id(app):
    return make_user(app, 'staff@ca.example.com', role=ROLE_STAFF,
                     email='staff@ca.example.com', name='Staff')


@pytest.fixture
def client_id(app):
    return make_user(app, 'ravi25', email='ravi@example.com', name='Ravi Kumar')


@pytest.fixture
def other_client_id(app):
    return make_user(app, 'asha10', email='asha@example.com', name='Asha Shah')


@pytest.fixture
def admin_client(app, admin_id):
    c = app.test_client()
    assert login(c, 'admin@ca.example.com').status_code == 200
    return c


@pytest.fixture
def staff_client(app, staff_id):
    c = app.test_client()
    assert login(c, 'staff@ca.example.com').status_code == 200
    return c


@pytest.fixture
def portal_client(app, client_id):
    c = app.test_client()
    assert login(c, 'ravi25').status_code == 200
    return c


@pytest.fixture
def other_portal_client(app, other_client_id):
    c = app.test_client()
    assert login(c, 'asha10').status_code == 200
    return c


def upload(data=b'%PDF-1.4 test', name='file.pdf', mimetype='application/pdf'):
    return (io.BytesIO(data), name, mimetype)
