"""In-memory stand-ins for the SQLAlchemy repositories."""
from visit_coupons.models import Coupon


class DuplicateCode(Exception):
    pass


class FakeLocationRepository:

    def __init__(self):
        self.rows = {}

    def put(self, location):
        self.rows[location.id] = location
        return location

    def get_by_slug(self, slug, active_only=True):
        for loc in self.rows.values():
            if loc.slug == slug and (loc.is_active or not active_only):
                return loc
        return None

    def get_by_id(self, location_id, active_only=True):
        loc = self.rows.get(location_id)
        if loc is None or (active_only and not loc.is_active):
            return None
        return loc

    def list(self, active_only=True):
        rows = [loc for loc in self.rows.values() if loc.is_active or not active_only]
        return sorted(rows, key=lambda loc: loc.name)

    def count(self, active_only=True):
        return len(self.list(active_only))


class FakeStoreRepository:

    def __init__(self):
        self.rows = {}

    def put(self, store):
        self.rows[store.id] = store
        return store

    def get_by_slug(self, slug, active_only=True):
        for store in self.rows.values():
            if store.slug == slug and (store.is_active or not active_only):
                return store
        return None

    def get_by_id(self, store_id, active_only=True):
        store = self.rows.get(store_id)
        if store is None or (active_only and not store.is_active):
            return None
        return store

    def list(self, active_only=True):
        rows = [s for s in self.rows.values() if s.is_active or not active_only]
        return sorted(rows, key=lambda s: s.name)

    def list_by_location(self, location_id, active_only=True):
        return [s for s in self.list(active_only) if s.location_id == location_id]

    def count(self, active_only=True, location_id=None):
        rows = self.list(active_only)
        if location_id is not None:
            rows = [s for s in rows if s.location_id == location_id]
        return len(rows)


class FakeCouponRepository:

    def __init__(self, locations, stores, clock):
        self.locations = locations
        self.stores = stores
        self.clock = clock
        self.rows = {}

    def add(self, code, location_id, created_at=None, used_by=None, validated_at=None):
        """Put a row in place directly, bypassing issue/redeem."""
        coupon = Coupon(code=code, location_id=location_id, is_used=used_by is not None,
                        created_at=created_at or self.clock())
        coupon.location = self.locations.rows[location_id]
        if used_by is not None:
            at = validated_at or self.clock()
            coupon.used_at = coupon.validated_at = at
            coupon.validated_by_store_id = used_by
            coupon.validated_by_store = self.stores.rows[used_by]
        self.rows[code] = coupon
        return coupon

    def find_by_code(self, code, location_id=None):
        coupon = self.rows.get(code)
        if coupon is None or (location_id is not None and coupon.location_id != location_id):
            return None
        return coupon

    def exists(self, code):
        return code in self.rows

    def insert(self, code, location_id):
        if code in self.rows:
            raise DuplicateCode(code)
        return self.add(code, location_id)

    def update_if_unused(self, code, store_id, at):
        coupon = self.rows.get(code)
        if coupon is None or coupon.is_used:
            return False
        coupon.is_used = True
        coupon.used_at = coupon.validated_at = at
        coupon.validated_by_store_id = store_id
        coupon.validated_by_store = self.stores.rows[store_id]
        return True

    def count(self, location_id=None, store_id=None, is_used=None,
              created_since=None, validated_since=None):
        n = 0
        for c in self.rows.values():
            if location_id is not None and c.location_id != location_id:
                continue
            if store_id is not None and c.validated_by_store_id != store_id:
                continue
            if is_used is not None and bool(c.is_used) != is_used:
                continue
            if created_since is not None and c.created_at < created_since:
                continue
            if validated_since is not None and (c.validated_at is None or c.validated_at < validated_since):
                continue
            n += 1
        return n

    def recent(self, limit=50):
        rows = sorted(self.rows.values(), key=lambda c: c.created_at, reverse=True)
        return rows[:limit]
