"""Coupon lifecycle: issue a code for a Location, redeem it once at a Store.

A coupon moves from issued-unused to redeemed exactly once. Redemption is a
single conditional update (``WHERE is_used = false``), so when two stores race
on the same code only one of them sees a fresh success.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging

from .codes import CodeSpaceExhausted, generate_unique_code, normalize_code

logger = logging.getLogger(__name__)

MSG_UNKNOWN_LOCATION = 'Unknown location.'
MSG_UNKNOWN_STORE = 'Unknown store.'
MSG_EMPTY_CODE = 'Please enter a coupon code.'
MSG_NOT_USABLE = 'This code cannot be used at this store.'
MSG_GENERATE_FAILED = 'Could not generate a coupon code.'
MSG_SAVE_FAILED = 'Could not save the coupon code.'
MSG_VALIDATE_FAILED = 'Something went wrong while checking the code.'

# error_code values, used by the HTTP layer to pick a status
INVALID_INPUT = 'invalid_input'
NOT_FOUND = 'not_found'
BACKEND_ERROR = 'backend_error'


def _utcnow():
    return datetime.now(timezone.utc)


def _dump(obj):
    return obj.to_dict() if obj is not None else None


@dataclass
class GenerateCodeResult:
    success: bool
    code: str | None = None
    location: object = None
    error: str | None = None
    error_code: str | None = None

    def to_dict(self):
        data = {'success': self.success}
        if self.code is not None:
            data['code'] = self.code
        if self.location is not None:
            data['location'] = _dump(self.location)
        if self.error:
            data['error'] = self.error
            data['errorCode'] = self.error_code
        return data


@dataclass
class SaveCodeResult:
    success: bool
    code: str | None = None
    location: object = None
    message: str | None = None
    error: str | None = None
    error_code: str | None = None

    def to_dict(self):
        data = {'success': self.success}
        if self.code is not None:
            data['code'] = self.code
        if self.location is not None:
            data['location'] = _dump(self.location)
        if self.message:
            data['message'] = self.message
        if self.error:
            data['error'] = self.error
            data['errorCode'] = self.error_code
        return data


@dataclass
class ValidateCodeResult:
    success: bool
    is_valid: bool | None = None
    is_used: bool | None = None
    location: object = None
    store: object = None
    message: str | None = None
    error: str | None = None
    error_code: str | None = None

    def to_dict(self):
        data = {'success': self.success}
        if self.is_valid is not None:
            data['isValid'] = self.is_valid
        if self.is_used is not None:
            data['isUsed'] = self.is_used
        if self.location is not None:
            data['location'] = _dump(self.location)
        if self.store is not None:
            data['store'] = _dump(self.store)
        if self.message:
            data['message'] = self.message
        if self.error:
            data['error'] = self.error
            data['errorCode'] = self.error_code
        return data


@dataclass
class CouponService:
    coupons: object
    locations: object
    stores: object
    clock: object = field(default=_utcnow)

    # -- reference lookups ---------------------------------------------

    def get_location_by_slug(self, slug):
        try:
            return self.locations.get_by_slug(slug)
        except Exception:
            logger.exception("location lookup failed for slug=%s", slug)
            return None

    def get_location_by_id(self, location_id):
        try:
            return self.locations.get_by_id(location_id)
        except Exception:
            logger.exception("location lookup failed for id=%s", location_id)
            return None

    def get_store_by_slug(self, slug):
        try:
            return self.stores.get_by_slug(slug)
        except Exception:
            logger.exception("store lookup failed for slug=%s", slug)
            return None

    def get_stores_by_location(self, location_slug):
        location = self.get_location_by_slug(location_slug)
        if location is None:
            return []
        try:
            return self.stores.list_by_location(location.id)
        except Exception:
            logger.exception("store listing failed for location=%s", location_slug)
            return []

    def get_all_locations(self):
        try:
            return self.locations.list()
        except Exception:
            logger.exception("location listing failed")
            return []

    def get_all_stores(self):
        try:
            return self.stores.list()
        except Exception:
            logger.exception("store listing failed")
            return []

    # -- code generation -------------------------------------------------

    def generate_code(self) -> GenerateCodeResult:
        try:
            code = generate_unique_code(self.coupons.exists)
        except CodeSpaceExhausted:
            logger.error("code space exhausted while generating a coupon code")
            return GenerateCodeResult(False, error=MSG_GENERATE_FAILED, error_code=BACKEND_ERROR)
        except Exception:
            logger.exception("code generation failed")
            return GenerateCodeResult(False, error=MSG_GENERATE_FAILED, error_code=BACKEND_ERROR)
        return GenerateCodeResult(True, code=code)

    def generate_code_for_location(self, location_slug) -> GenerateCodeResult:
        location = self.get_location_by_slug(location_slug)
        if location is None:
            return GenerateCodeResult(False, error=MSG_UNKNOWN_LOCATION, error_code=NOT_FOUND)
        result = self.generate_code()
        result.location = location
        return result

    # -- issuance --------------------------------------------------------

    def issue(self, code, location_id) -> SaveCodeResult:
        code = normalize_code(code)
        if not code:
            return SaveCodeResult(False, error=MSG_EMPTY_CODE, error_code=INVALID_INPUT)
        location = self.get_location_by_id(location_id)
        if location is None:
            return SaveCodeResult(False, error=MSG_UNKNOWN_LOCATION, error_code=NOT_FOUND)
        return self._insert(code, location)

    def save_code_for_location(self, code, location_slug) -> SaveCodeResult:
        code = normalize_code(code)
        if not code:
            return SaveCodeResult(False, error=MSG_EMPTY_CODE, error_code=INVALID_INPUT)
        location = self.get_location_by_slug(location_slug)
        if location is None:
            return SaveCodeResult(False, error=MSG_UNKNOWN_LOCATION, error_code=NOT_FOUND)
        return self._insert(code, location)

    def issue_for_location(self, location_slug) -> SaveCodeResult:
        generated = self.generate_code_for_location(location_slug)
        if not generated.success:
            return SaveCodeResult(False, error=generated.error, error_code=generated.error_code)
        return self._insert(generated.code, generated.location)

    def _insert(self, code, location) -> SaveCodeResult:
        try:
            self.coupons.insert(code, location.id)
        except Exception:
            logger.exception("failed to save coupon %s for location %s", code, location.id)
            return SaveCodeResult(False, error=MSG_SAVE_FAILED, error_code=BACKEND_ERROR)
        logger.info("issued coupon %s for location %s", code, location.slug)
        return SaveCodeResult(
            True,
            code=code,
            location=location,
            message=f"{location.name} visit coupon\nCode: {code}\nYour coupon has been issued!",
        )

    # -- redemption ------------------------------------------------------

    def validate_code_at_store(self, code, store_slug) -> ValidateCodeResult:
        store = self.get_store_by_slug(store_slug)
        if store is None:
            return ValidateCodeResult(False, error=MSG_UNKNOWN_STORE, error_code=NOT_FOUND)

        code = normalize_code(code)
        if not code:
            return ValidateCodeResult(False, error=MSG_EMPTY_CODE, error_code=INVALID_INPUT)

        try:
            coupon = self.coupons.find_by_code(code, location_id=store.location_id)
            if coupon is None:
                logger.info("code %s not usable at store %s", code, store.slug)
                return ValidateCodeResult(True, is_valid=False, message=MSG_NOT_USABLE)

            if coupon.is_used:
                return self._already_used(coupon, store)

            now = self.clock()
            if not self.coupons.update_if_unused(code, store.id, now):
                # another store redeemed it between the lookup and the update
                logger.warning("lost redemption race for %s at store %s", code, store.slug)
                coupon = self.coupons.find_by_code(code, location_id=store.location_id)
                return self._already_used(coupon, store)
        except Exception:
            logger.exception("validation failed for code %s at store %s", code, store_slug)
            return ValidateCodeResult(False, error=MSG_VALIDATE_FAILED, error_code=BACKEND_ERROR)

        location = coupon.location
        logger.info("redeemed coupon %s at store %s", code, store.slug)
        return ValidateCodeResult(
            True,
            is_valid=True,
            is_used=False,
            location=location,
            store=store,
            message=f"{location.name} visit confirmed!\nRedeemed at {store.name}",
        )

    redeem = validate_code_at_store

    def _already_used(self, coupon, store) -> ValidateCodeResult:
        used_by = coupon.validated_by_store
        used_at_store = used_by.name if used_by is not None else 'another store'
        return ValidateCodeResult(
            True,
            is_valid=True,
            is_used=True,
            location=coupon.location,
            store=store,
            message=f"This code was already used at {used_at_store}.",
        )

    # -- admin reads -----------------------------------------------------

    def get_coupon_details(self, code):
        code = normalize_code(code)
        if not code:
            return None
        try:
            return self.coupons.find_by_code(code)
        except Exception:
            logger.exception("coupon lookup failed for %s", code)
            return None

    def get_recent_coupons(self, limit=50):
        try:
            return self.coupons.recent(limit)
        except Exception:
            logger.exception("recent coupon listing failed")
            return []
