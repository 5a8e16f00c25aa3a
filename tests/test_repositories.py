from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from visit_coupons.models import Coupon, db


class TestCouponRepository:

    def test_insert_and_find(self, sql_repos):
        coupons, _, _ = sql_repos
        row = coupons.insert('ZK8X2Q1B', 'loc-gangnam')
        assert row.id is not None
        assert row.is_used is False
        assert coupons.exists('ZK8X2Q1B')
        assert not coupons.exists('MISSING1')
        assert coupons.find_by_code('ZK8X2Q1B', location_id='loc-gangnam').code == 'ZK8X2Q1B'
        assert coupons.find_by_code('ZK8X2Q1B', location_id='loc-hongdae') is None

    def test_duplicate_code_rolls_back(self, sql_repos):
        coupons, _, _ = sql_repos
        coupons.insert('ZK8X2Q1B', 'loc-gangnam')
        with pytest.raises(IntegrityError):
            coupons.insert('ZK8X2Q1B', 'loc-hongdae')
        # session is usable again after the rollback
        coupons.insert('ABCD1234', 'loc-hongdae')
        assert coupons.count() == 2

    def test_update_if_unused_only_once(self, sql_repos):
        coupons, _, _ = sql_repos
        coupons.insert('ZK8X2Q1B', 'loc-gangnam')
        at = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)
        assert coupons.update_if_unused('ZK8X2Q1B', 'store-cafe-gangnam', at) is True
        assert coupons.update_if_unused('ZK8X2Q1B', 'store-bakery-gangnam', at) is False
        assert coupons.update_if_unused('MISSING1', 'store-cafe-gangnam', at) is False

        row = coupons.find_by_code('ZK8X2Q1B')
        assert row.is_used is True
        assert row.validated_by_store_id == 'store-cafe-gangnam'
        assert row.validated_by_store.name == 'Cafe Gangnam'
        assert row.used_at is not None
        assert row.validated_at is not None

    def test_count_filters(self, sql_repos):
        coupons, _, _ = sql_repos
        for code in ('GANG0001', 'GANG0002', 'GANG0003'):
            coupons.insert(code, 'loc-gangnam')
        coupons.insert('HONG0001', 'loc-hongdae')
        now = datetime.now(timezone.utc)
        coupons.update_if_unused('GANG0001', 'store-cafe-gangnam', now)
        coupons.update_if_unused('HONG0001', 'store-pub-hongdae', now)

        assert coupons.count() == 4
        assert coupons.count(is_used=True) == 2
        assert coupons.count(is_used=False) == 2
        assert coupons.count(location_id='loc-gangnam') == 3
        assert coupons.count(location_id='loc-gangnam', is_used=True) == 1
        assert coupons.count(store_id='store-pub-hongdae') == 1
        assert coupons.count(created_since=now - timedelta(hours=1)) == 4
        assert coupons.count(created_since=now + timedelta(hours=1)) == 0
        assert coupons.count(validated_since=now - timedelta(hours=1)) == 2

    def test_recent_newest_first(self, sql_repos):
        coupons, _, _ = sql_repos
        old = Coupon(code='OLDER001', location_id='loc-gangnam',
                     created_at=datetime.now(timezone.utc) - timedelta(days=2))
        db.session.add(old)
        db.session.commit()
        coupons.insert('NEWER001', 'loc-gangnam')
        assert [c.code for c in coupons.recent(10)] == ['NEWER001', 'OLDER001']
        assert [c.code for c in coupons.recent(1)] == ['NEWER001']


class TestLocationAndStoreRepositories:

    def test_active_filter(self, sql_repos):
        _, locations, stores = sql_repos
        loc = locations.get_by_slug('gangnam')
        loc.is_active = False
        locations.save(loc)
        assert locations.get_by_slug('gangnam') is None
        assert locations.get_by_slug('gangnam', active_only=False).id == 'loc-gangnam'
        assert locations.count() == 1
        assert locations.count(active_only=False) == 2

    def test_list_ordered_by_name(self, sql_repos):
        _, locations, stores = sql_repos
        assert [loc.name for loc in locations.list()] == ['Gangnam Square', 'Hongdae Park']
        assert [s.name for s in stores.list_by_location('loc-gangnam')] == ['Cafe Gangnam', 'Gangnam Bakery']

    def test_store_counts(self, sql_repos):
        _, _, stores = sql_repos
        assert stores.count() == 3
        assert stores.count(location_id='loc-hongdae') == 1
        store = stores.get_by_id('store-pub-hongdae')
        assert store.location.slug == 'hongdae'
