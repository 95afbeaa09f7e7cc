from datetime import date

import pytest

from app import create_app
from models import Asset, db
from repository import AssetRepository

API_KEY = 'test-api-key'
ADMIN_PASSWORD = 'secret-pass'


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'API_KEY': API_KEY,
        'ADMIN_USERNAME': 'admin',
        'ADMIN_PASSWORD': ADMIN_PASSWORD,
        'DEFAULT_LANGUAGE': 'en',
        'DEFAULT_CURRENCY': 'EGP',
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def api_headers():
    return {'Authorization': f'Bearer {API_KEY}'}


@pytest.fixture
def logged_in_client(client):
    response = client.post('/login', data={'username': 'admin', 'password': ADMIN_PASSWORD})
    assert response.status_code == 302
    return client


@pytest.fixture
def sample_assets(app_ctx):
    """Three assets whose 2024 depreciation is 1800 + 2400 + 1440."""
    repo = AssetRepository()
    laptop = repo.add(Asset(name='Laptop', purchase_date=date(2023, 1, 15), cost=10000.0,
                            salvage_value=1000.0, useful_life=5,
                            depreciation_method='straight-line'))
    truck = repo.add(Asset(name='Truck', purchase_date=date(2023, 7, 1), cost=12000.0,
                           salvage_value=0.0, useful_life=5,
                           depreciation_method='straight-line'))
    press = repo.add(Asset(name='Press', purchase_date=date(2022, 1, 3), cost=10000.0,
                           salvage_value=1000.0, useful_life=5,
                           depreciation_method='double-declining'))
    return {'laptop': laptop, 'truck': truck, 'press': press}
