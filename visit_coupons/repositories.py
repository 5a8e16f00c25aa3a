"""SQLAlchemy-backed data access for coupons, locations and stores.

The services in ``visit_coupons.services`` only talk to these classes, so
tests can swap them for in-memory fakes with the same methods.
"""
from __future__ import annotations

from sqlalchemy import func, update

from .models import Coupon, Location, Store


class LocationRepository:

    def __init__(self, session):
        self.session = session

    def get_by_slug(self, slug: str, active_only: bool = True) -> Location | None:
        query = self.session.query(Location).filter(Location.slug == slug)
        if active_only:
            query = query.filter(Location.is_active.is_(True))
        return query.first()

    def get_by_id(self, location_id: str, active_only: bool = True) -> Location | None:
        query = self.session.query(Location).filter(Location.id == location_id)
        if active_only:
            query = query.filter(Location.is_active.is_(True))
        return query.first()

    def list(self, active_only: bool = True) -> list[Location]:
        query = self.session.query(Location)
        if active_only:
            query = query.filter(Location.is_active.is_(True))
        return query.order_by(Location.name).all()

    def count(self, active_only: bool = True) -> int:
        query = self.session.query(func.count(Location.id))
        if active_only:
            query = query.filter(Location.is_active.is_(True))
        return query.scalar() or 0

    def add(self, location: Location) -> Location:
        self.session.add(location)
        self._commit()
        return location

    def save(self, location: Location) -> Location:
        self._commit()
        return location

    def delete(self, location: Location) -> None:
        self.session.delete(location)
        self._commit()

    def _commit(self):
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise


class StoreRepository:

    def __init__(self, session):
        self.session = session

    def get_by_slug(self, slug: str, active_only: bool = True) -> Store | None:
        query = self.session.query(Store).filter(Store.slug == slug)
        if active_only:
            query = query.filter(Store.is_active.is_(True))
        return query.first()

    def get_by_id(self, store_id: str, active_only: bool = True) -> Store | None:
        query = self.session.query(Store).filter(Store.id == store_id)
        if active_only:
            query = query.filter(Store.is_active.is_(True))
        return query.first()

    def list(self, active_only: bool = True) -> list[Store]:
        query = self.session.query(Store)
        if active_only:
            query = query.filter(Store.is_active.is_(True))
        return query.order_by(Store.name).all()

    def list_by_location(self, location_id: str, active_only: bool = True) -> list[Store]:
        query = self.session.query(Store).filter(Store.location_id == location_id)
        if active_only:
            query = query.filter(Store.is_active.is_(True))
        return query.order_by(Store.name).all()

    def count(self, active_only: bool = True, location_id: str | None = None) -> int:
        query = self.session.query(func.count(Store.id))
        if active_only:
            query = query.filter(Store.is_active.is_(True))
        if location_id is not None:
            query = query.filter(Store.location_id == location_id)
        return query.scalar() or 0

    def add(self, store: Store) -> Store:
        self.session.add(store)
        self._commit()
        return store

    def save(self, store: Store) -> Store:
        self._commit()
        return store

    def delete(self, store: Store) -> None:
        self.session.delete(store)
        self._commit()

    def _commit(self):
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise


class CouponRepository:

    def __init__(self, session):
        self.session = session

    def find_by_code(self, code: str, location_id: str | None = None) -> Coupon | None:
        query = self.session.query(Coupon).filter(Coupon.code == code)
        if location_id is not None:
            query = query.filter(Coupon.location_id == location_id)
        return query.first()

    def exists(self, code: str) -> bool:
        return self.session.query(Coupon.id).filter(Coupon.code == code).first() is not None

    def insert(self, code: str, location_id: str) -> Coupon:
        coupon = Coupon(code=code, location_id=location_id, is_used=False)
        self.session.add(coupon)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return coupon

    def update_if_unused(self, code: str, store_id: str, at) -> bool:
        """Mark ``code`` used by ``store_id``; False when it was already used."""
        stmt = (
            update(Coupon)
            .where(Coupon.code == code, Coupon.is_used.is_(False))
            .values(is_used=True, used_at=at, validated_at=at, validated_by_store_id=store_id)
            .execution_options(synchronize_session=False)
        )
        try:
            res = self.session.execute(stmt)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return res.rowcount == 1

    def count(self, location_id=None, store_id=None, is_used=None,
              created_since=None, validated_since=None) -> int:
        query = self.session.query(func.count(Coupon.id))
        if location_id is not None:
            query = query.filter(Coupon.location_id == location_id)
        if store_id is not None:
            query = query.filter(Coupon.validated_by_store_id == store_id)
        if is_used is not None:
            query = query.filter(Coupon.is_used.is_(is_used))
        if created_since is not None:
            query = query.filter(Coupon.created_at >= created_since)
        if validated_since is not None:
            query = query.filter(Coupon.validated_at >= validated_since)
        return query.scalar() or 0

    def recent(self, limit: int = 50) -> list[Coupon]:
        return (
            self.session.query(Coupon)
            .order_by(Coupon.created_at.desc(), Coupon.id.desc())
            .limit(limit)
            .all()
        )
