"""Shared fixtures: an app on in-memory SQLite with two locations and three stores."""
from datetime import datetime, timezone

import pytest

from visit_coupons import create_app
from visit_coupons.config import Config
from visit_coupons.models import Location, Store, db
from visit_coupons.repositories import CouponRepository, LocationRepository, StoreRepository
from tests.fakes import FakeCouponRepository, FakeLocationRepository, FakeStoreRepository

ADMIN_KEY = 'test-admin-key'
FIXED_NOW = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


def _seed(session):
    gangnam = Location(id='loc-gangnam', name='Gangnam Square', slug='gangnam')
    hongdae = Location(id='loc-hongdae', name='Hongdae Park', slug='hongdae')
    session.add_all([gangnam, hongdae])
    session.add_all([
        Store(id='store-cafe-gangnam', name='Cafe Gangnam', slug='store-cafe-gangnam', location_id='loc-gangnam'),
        Store(id='store-bakery-gangnam', name='Gangnam Bakery', slug='bakery-gangnam', location_id='loc-gangnam'),
        Store(id='store-pub-hongdae', name='Hongdae Pub', slug='pub-hongdae', location_id='loc-hongdae'),
    ])
    session.commit()


@pytest.fixture
def app(tmp_path):
    config = Config(
        TESTING=True,
        SQLALCHEMY_DATABASE_URI='sqlite://',
        ADMIN_API_KEY=ADMIN_KEY,
        USE_REDIS=False,
        RATE_LIMIT_VALIDATE=1000,
        STORAGE_DIR=str(tmp_path / 'storage'),
        BASE_URL='http://testserver',
        COUPON_BACKGROUND_PATH=None,
    )
    app = create_app(config)
    with app.app_context():
        _seed(db.session)
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_headers():
    return {'X-Admin-Key': ADMIN_KEY}


@pytest.fixture
def sql_repos(app):
    session = db.session
    return CouponRepository(session), LocationRepository(session), StoreRepository(session)


@pytest.fixture
def fake_repos():
    """In-memory repositories holding the same locations and stores as the app fixture."""
    locations = FakeLocationRepository()
    stores = FakeStoreRepository()
    gangnam = locations.put(Location(id='loc-gangnam', name='Gangnam Square', slug='gangnam', is_active=True))
    hongdae = locations.put(Location(id='loc-hongdae', name='Hongdae Park', slug='hongdae', is_active=True))
    locations.put(Location(id='loc-closed', name='Closed Pier', slug='closed-pier', is_active=False))
    stores.put(Store(id='store-cafe-gangnam', name='Cafe Gangnam', slug='store-cafe-gangnam',
                     location_id=gangnam.id, location=gangnam, is_active=True))
    stores.put(Store(id='store-bakery-gangnam', name='Gangnam Bakery', slug='bakery-gangnam',
                     location_id=gangnam.id, location=gangnam, is_active=True))
    stores.put(Store(id='store-pub-hongdae', name='Hongdae Pub', slug='pub-hongdae',
                     location_id=hongdae.id, location=hongdae, is_active=True))
    coupons = FakeCouponRepository(locations, stores, clock=lambda: FIXED_NOW)
    return coupons, locations, stores
