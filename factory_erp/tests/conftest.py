import re

import pytest

from factory_erp.app_container import AppContainer, get_container
from factory_erp.main import app as flask_app

CSRF_RE = re.compile(r'name="csrf_token" value="([0-9a-f]+)"')


@pytest.fixture
def data_dir(tmp_path):
    AppContainer.reset_instance()
    yield str(tmp_path)
    AppContainer.reset_instance()


@pytest.fixture
def container(data_dir):
    return get_container(data_dir)


@pytest.fixture
def app(data_dir):
    flask_app.config.update(TESTING=True, DATA_DIR=data_dir)
    yield flask_app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


def extract_csrf(html):
    m = CSRF_RE.search(html)
    return m.group(1) if m else None


@pytest.fixture
def login(client):
    """Log in through the form; returns the session CSRF token."""
    def _login(username='admin', password='123'):
        getr = client.get('/')
        assert getr.status_code == 200
        token = extract_csrf(getr.get_data(as_text=True))
        assert token, 'no csrf token in login page'
        r = client.post('/', data={'username': username, 'password': password, 'csrf_token': token},
                        follow_redirects=True)
        assert r.status_code == 200
        return token
    return _login
