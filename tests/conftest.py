import pytest

from telemed import create_app
from telemed.models import db
from telemed.storage import storage
from telemed.utils.jwt_utils import encode_identity_token


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', {'UPLOAD_FOLDER': str(tmp_path / 'uploads')})
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Create (or refresh) a user directly in the store; returns its id."""
    def _make_user(user_id, role='patient', **fields):
        with app.app_context():
            user = storage.upsert_user({'id': user_id, 'role': role, **fields})
            return user.id
    return _make_user


def issue_token(app, user_id, **claims):
    with app.app_context():
        return encode_identity_token({'sub': user_id, **claims})


@pytest.fixture
def login(app):
    """Log a test client in through the identity callback."""
    def _login(client, user_id, role=None, **claims):
        if role is not None:
            claims['role'] = role
        response = client.post('/api/auth/callback', json={'token': issue_token(app, user_id, **claims)})
        assert response.status_code == 200, response.get_json()
        return response
    return _login


@pytest.fixture
def patient_client(app, login):
    client = app.test_client()
    login(client, 'patient-1', role='patient', first_name='Pat')
    return client


@pytest.fixture
def doctor_client(app, login):
    client = app.test_client()
    login(client, 'doctor-1', role='doctor', first_name='Doc')
    return client
