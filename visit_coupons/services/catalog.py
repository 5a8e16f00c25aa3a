"""Admin management of Locations and Stores."""
from dataclasses import dataclass
import logging
import re

from ..models import Location, Store
from .coupons import BACKEND_ERROR, INVALID_INPUT, NOT_FOUND

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r'^[a-z0-9]+(?:-[a-z0-9]+)*$')

LOCATION_FIELDS = ('name', 'slug', 'description', 'is_active',
                   'artwork_image_path', 'share_title', 'share_description')
STORE_FIELDS = ('name', 'slug', 'location_id', 'description', 'is_active')


class CatalogError(ValueError):
    pass


@dataclass
class AdminResult:
    success: bool
    data: object = None
    error: str | None = None
    error_code: str | None = None

    @property
    def not_found(self) -> bool:
        return self.error_code == NOT_FOUND

    def to_dict(self):
        out = {'success': self.success}
        if self.data is not None:
            out['data'] = self.data.to_dict()
        if self.error:
            out['error'] = self.error
            out['errorCode'] = self.error_code
        return out


def _as_bool(value):
    if isinstance(value, str):
        value = value.strip().lower()
        if value in ('1', 'true', 'yes', 'on'):
            return True
        if value in ('0', 'false', 'no', 'off', ''):
            return False
        raise CatalogError('is_active must be true or false')
    return bool(value)


def _clean(data, fields):
    out = {}
    for key in fields:
        if key not in data:
            continue
        value = data[key]
        if isinstance(value, str):
            value = value.strip()
        if key == 'id' and not value:
            continue
        if key == 'is_active':
            value = _as_bool(value)
        out[key] = value
    return out


def _check_required(values, creating):
    for key in ('name', 'slug'):
        if creating and not values.get(key):
            raise CatalogError(f"{key} is required")
        if key in values and not values[key]:
            raise CatalogError(f"{key} must not be empty")
    slug = values.get('slug')
    if slug is not None and not (isinstance(slug, str) and SLUG_PATTERN.match(slug)):
        raise CatalogError('slug must be lower-case letters, digits and dashes')


@dataclass
class CatalogService:
    locations: object
    stores: object
    coupons: object

    def get_all_locations_for_admin(self):
        try:
            return self.locations.list(active_only=False)
        except Exception:
            logger.exception("admin location listing failed")
            return []

    def get_all_stores_for_admin(self):
        try:
            return self.stores.list(active_only=False)
        except Exception:
            logger.exception("admin store listing failed")
            return []

    # -- locations -------------------------------------------------------

    def create_location(self, data) -> AdminResult:
        try:
            values = _clean(data, ('id',) + LOCATION_FIELDS)
            _check_required(values, creating=True)
            self._ensure_free_location_slug(values['slug'])
            location = self.locations.add(Location(**values))
        except CatalogError as e:
            return AdminResult(False, error=str(e), error_code=INVALID_INPUT)
        except Exception:
            logger.exception("failed to create location %s", data.get('slug'))
            return AdminResult(False, error='Could not create the location.', error_code=BACKEND_ERROR)
        logger.info("created location %s", location.slug)
        return AdminResult(True, data=location)

    def update_location(self, location_id, data) -> AdminResult:
        try:
            values = _clean(data, LOCATION_FIELDS)
            location = self.locations.get_by_id(location_id, active_only=False)
            if location is None:
                return AdminResult(False, error='Location not found.', error_code=NOT_FOUND)
            _check_required(values, creating=False)
            if 'slug' in values and values['slug'] != location.slug:
                self._ensure_free_location_slug(values['slug'])
            for key, value in values.items():
                setattr(location, key, value)
            self.locations.save(location)
        except CatalogError as e:
            return AdminResult(False, error=str(e), error_code=INVALID_INPUT)
        except Exception:
            logger.exception("failed to update location %s", location_id)
            return AdminResult(False, error='Could not update the location.', error_code=BACKEND_ERROR)
        return AdminResult(True, data=location)

    def delete_location(self, location_id) -> AdminResult:
        try:
            location = self.locations.get_by_id(location_id, active_only=False)
            if location is None:
                return AdminResult(False, error='Location not found.', error_code=NOT_FOUND)
            if self.stores.count(active_only=False, location_id=location.id):
                raise CatalogError('Location still has stores; deactivate it instead.')
            if self.coupons.count(location_id=location.id):
                raise CatalogError('Location has issued coupons; deactivate it instead.')
            self.locations.delete(location)
        except CatalogError as e:
            return AdminResult(False, error=str(e), error_code=INVALID_INPUT)
        except Exception:
            logger.exception("failed to delete location %s", location_id)
            return AdminResult(False, error='Could not delete the location.', error_code=BACKEND_ERROR)
        logger.info("deleted location %s", location_id)
        return AdminResult(True)

    def _ensure_free_location_slug(self, slug):
        if self.locations.get_by_slug(slug, active_only=False) is not None:
            raise CatalogError(f"slug '{slug}' is already taken")

    # -- stores ----------------------------------------------------------

    def create_store(self, data) -> AdminResult:
        try:
            values = _clean(data, ('id',) + STORE_FIELDS)
            _check_required(values, creating=True)
            if not values.get('location_id'):
                raise CatalogError('location_id is required')
            self._ensure_location_exists(values['location_id'])
            self._ensure_free_store_slug(values['slug'])
            store = self.stores.add(Store(**values))
        except CatalogError as e:
            return AdminResult(False, error=str(e), error_code=INVALID_INPUT)
        except Exception:
            logger.exception("failed to create store %s", data.get('slug'))
            return AdminResult(False, error='Could not create the store.', error_code=BACKEND_ERROR)
        logger.info("created store %s", store.slug)
        return AdminResult(True, data=store)

    def update_store(self, store_id, data) -> AdminResult:
        try:
            values = _clean(data, STORE_FIELDS)
            store = self.stores.get_by_id(store_id, active_only=False)
            if store is None:
                return AdminResult(False, error='Store not found.', error_code=NOT_FOUND)
            _check_required(values, creating=False)
            if 'location_id' in values:
                self._ensure_location_exists(values['location_id'])
            if 'slug' in values and values['slug'] != store.slug:
                self._ensure_free_store_slug(values['slug'])
            for key, value in values.items():
                setattr(store, key, value)
            self.stores.save(store)
        except CatalogError as e:
            return AdminResult(False, error=str(e), error_code=INVALID_INPUT)
        except Exception:
            logger.exception("failed to update store %s", store_id)
            return AdminResult(False, error='Could not update the store.', error_code=BACKEND_ERROR)
        return AdminResult(True, data=store)

    def delete_store(self, store_id) -> AdminResult:
        try:
            store = self.stores.get_by_id(store_id, active_only=False)
            if store is None:
                return AdminResult(False, error='Store not found.', error_code=NOT_FOUND)
            if self.coupons.count(store_id=store.id):
                raise CatalogError('Store has validated coupons; deactivate it instead.')
            self.stores.delete(store)
        except CatalogError as e:
            return AdminResult(False, error=str(e), error_code=INVALID_INPUT)
        except Exception:
            logger.exception("failed to delete store %s", store_id)
            return AdminResult(False, error='Could not delete the store.', error_code=BACKEND_ERROR)
        logger.info("deleted store %s", store_id)
        return AdminResult(True)

    def _ensure_location_exists(self, location_id):
        if self.locations.get_by_id(location_id, active_only=False) is None:
            raise CatalogError('location_id does not match any location')

    def _ensure_free_store_slug(self, slug):
        if self.stores.get_by_slug(slug, active_only=False) is not None:
            raise CatalogError(f"slug '{slug}' is already taken")
