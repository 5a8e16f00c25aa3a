from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

MSG_STATS_FAILED = 'Could not load statistics.'


def _utcnow():
    return datetime.now(timezone.utc)


def usage_rate(used: int, total: int) -> int:
    """Percentage of used coupons, rounded half up."""
    if total <= 0:
        return 0
    return int(used * 100 / total + 0.5)


@dataclass
class CouponStatsResult:
    success: bool
    total: int = 0
    used: int = 0
    unused: int = 0
    location: object = None
    error: str | None = None

    def to_dict(self):
        data = {'success': self.success, 'total': self.total, 'used': self.used, 'unused': self.unused}
        if self.location is not None:
            data['location'] = self.location.to_dict()
        if self.error:
            data['error'] = self.error
        return data


@dataclass
class StoreStatsResult:
    success: bool
    validated: int = 0
    store: object = None
    error: str | None = None

    def to_dict(self):
        data = {'success': self.success, 'validated': self.validated}
        if self.store is not None:
            data['store'] = self.store.to_dict()
        if self.error:
            data['error'] = self.error
        return data


@dataclass
class SystemStatsResult:
    success: bool
    total_coupons: int = 0
    used_coupons: int = 0
    unused_coupons: int = 0
    usage_rate: int = 0
    active_locations: int = 0
    active_stores: int = 0
    today_issued: int = 0
    today_used: int = 0
    error: str | None = None

    def to_dict(self):
        data = dict(self.__dict__)
        if not self.error:
            data.pop('error')
        return data


@dataclass
class StatsService:
    coupons: object
    locations: object
    stores: object
    clock: object = field(default=_utcnow)

    def get_stats(self) -> CouponStatsResult:
        try:
            total = self.coupons.count()
            used = self.coupons.count(is_used=True)
        except Exception:
            logger.exception("global coupon stats failed")
            return CouponStatsResult(False, error=MSG_STATS_FAILED)
        return CouponStatsResult(True, total=total, used=used, unused=total - used)

    def get_location_stats(self, location_slug) -> CouponStatsResult:
        try:
            location = self.locations.get_by_slug(location_slug)
            if location is None:
                return CouponStatsResult(False, error='Unknown location.')
            total = self.coupons.count(location_id=location.id)
            used = self.coupons.count(location_id=location.id, is_used=True)
        except Exception:
            logger.exception("location stats failed for %s", location_slug)
            return CouponStatsResult(False, error=MSG_STATS_FAILED)
        return CouponStatsResult(True, total=total, used=used, unused=total - used, location=location)

    def get_store_stats(self, store_slug) -> StoreStatsResult:
        try:
            store = self.stores.get_by_slug(store_slug)
            if store is None:
                return StoreStatsResult(False, error='Unknown store.')
            validated = self.coupons.count(store_id=store.id)
        except Exception:
            logger.exception("store stats failed for %s", store_slug)
            return StoreStatsResult(False, error=MSG_STATS_FAILED)
        return StoreStatsResult(True, validated=validated, store=store)

    def get_system_stats(self) -> SystemStatsResult:
        # "today" starts at midnight UTC
        today = self.clock().astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
        try:
            total = self.coupons.count()
            used = self.coupons.count(is_used=True)
            active_locations = self.locations.count()
            active_stores = self.stores.count()
            today_issued = self.coupons.count(created_since=today)
            today_used = self.coupons.count(is_used=True, validated_since=today)
        except Exception:
            logger.exception("system stats failed")
            return SystemStatsResult(False, error=MSG_STATS_FAILED)
        return SystemStatsResult(
            True,
            total_coupons=total,
            used_coupons=used,
            unused_coupons=total - used,
            usage_rate=usage_rate(used, total),
            active_locations=active_locations,
            active_stores=active_stores,
            today_issued=today_issued,
            today_used=today_used,
        )

    def get_location_usage_stats(self) -> list[dict]:
        try:
            locations = self.locations.list()
            rows = []
            for location in locations:
                total = self.coupons.count(location_id=location.id)
                used = self.coupons.count(location_id=location.id, is_used=True)
                rows.append({
                    'location': location,
                    'total': total,
                    'used': used,
                    'usage_rate': usage_rate(used, total),
                })
        except Exception:
            logger.exception("location usage stats failed")
            return []
        return sorted(rows, key=lambda r: r['usage_rate'], reverse=True)

    def get_store_validation_stats(self) -> list[dict]:
        try:
            rows = [
                {'store': store, 'validated': self.coupons.count(store_id=store.id)}
                for store in self.stores.list()
            ]
        except Exception:
            logger.exception("store validation stats failed")
            return []
        return sorted(rows, key=lambda r: r['validated'], reverse=True)
