"""Per-request construction of services from the app config and db session."""
from flask import current_app

from .models import db
from .repositories import CouponRepository, LocationRepository, StoreRepository
from .services.catalog import CatalogService
from .services.coupons import CouponService
from .services.stats import StatsService
from .services.storage import ImageStorage


def _repositories():
    session = db.session
    return CouponRepository(session), LocationRepository(session), StoreRepository(session)


def coupon_service() -> CouponService:
    coupons, locations, stores = _repositories()
    return CouponService(coupons, locations, stores)


def stats_service() -> StatsService:
    coupons, locations, stores = _repositories()
    return StatsService(coupons, locations, stores)


def catalog_service() -> CatalogService:
    coupons, locations, stores = _repositories()
    return CatalogService(locations, stores, coupons)


def image_storage() -> ImageStorage:
    cfg = current_app.config
    return ImageStorage(
        root=cfg['STORAGE_DIR'],
        bucket=cfg['STORAGE_BUCKET'],
        base_url=cfg['BASE_URL'],
        max_bytes=cfg['MAX_IMAGE_BYTES'],
    )
