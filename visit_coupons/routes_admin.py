import hmac
import time

from flask import Blueprint, current_app, jsonify, request
from werkzeug.utils import secure_filename

from .deps import catalog_service, coupon_service, image_storage, stats_service
from .services.coupons import BACKEND_ERROR, INVALID_INPUT, NOT_FOUND

bp = Blueprint('admin', __name__)


@bp.before_request
def require_admin_key():
    # Simple API-key auth
    api_key = request.headers.get('X-Admin-Key') or request.args.get('key') or ''
    expected = current_app.config.get('ADMIN_API_KEY') or ''
    if not expected or not hmac.compare_digest(api_key.encode(), expected.encode()):
        return jsonify({'error': 'unauthorized'}), 401


_ERROR_STATUS = {INVALID_INPUT: 400, NOT_FOUND: 404, BACKEND_ERROR: 503}


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _admin_response(result, created=False):
    if result.success:
        return jsonify(result.to_dict()), (201 if created else 200)
    return jsonify(result.to_dict()), _ERROR_STATUS.get(result.error_code, 400)


@bp.get('/ping')
def ping():
    return jsonify({'admin': 'ok'})


# -- dashboard ---------------------------------------------------------------

@bp.get('/stats')
def system_stats():
    result = stats_service().get_system_stats()
    return jsonify(result.to_dict()), (200 if result.success else 503)


@bp.get('/stats/locations')
def location_usage():
    rows = stats_service().get_location_usage_stats()
    return jsonify({'locations': [dict(r, location=r['location'].to_dict()) for r in rows]})


@bp.get('/stats/stores')
def store_validation():
    rows = stats_service().get_store_validation_stats()
    return jsonify({'stores': [dict(r, store=r['store'].to_dict()) for r in rows]})


@bp.get('/coupons/recent')
def recent_coupons():
    limit = request.args.get('limit', default=50, type=int)
    limit = max(1, min(limit, 500))
    coupons = coupon_service().get_recent_coupons(limit)
    return jsonify({'coupons': [c.to_dict() for c in coupons]})


@bp.get('/coupons/<code>')
def coupon_details(code: str):
    coupon = coupon_service().get_coupon_details(code)
    if coupon is None:
        return jsonify({'error': 'not_found'}), 404
    return jsonify(coupon.to_dict())


# -- locations & stores --------------------------------------------------------

@bp.get('/locations')
def admin_locations():
    locations = catalog_service().get_all_locations_for_admin()
    return jsonify({'locations': [loc.to_dict() for loc in locations]})


@bp.post('/locations')
def create_location():
    data = _json_body()
    return _admin_response(catalog_service().create_location(data), created=True)


@bp.put('/locations/<location_id>')
def update_location(location_id: str):
    data = _json_body()
    return _admin_response(catalog_service().update_location(location_id, data))


@bp.delete('/locations/<location_id>')
def delete_location(location_id: str):
    return _admin_response(catalog_service().delete_location(location_id))


@bp.get('/stores')
def admin_stores():
    stores = catalog_service().get_all_stores_for_admin()
    return jsonify({'stores': [s.to_dict() for s in stores]})


@bp.post('/stores')
def create_store():
    data = _json_body()
    return _admin_response(catalog_service().create_store(data), created=True)


@bp.put('/stores/<store_id>')
def update_store(store_id: str):
    data = _json_body()
    return _admin_response(catalog_service().update_store(store_id, data))


@bp.delete('/stores/<store_id>')
def delete_store(store_id: str):
    return _admin_response(catalog_service().delete_store(store_id))


# -- artwork images --------------------------------------------------------------

@bp.get('/images')
def list_images():
    result = image_storage().list(request.args.get('prefix', ''))
    return jsonify(result.to_dict()), (200 if result.success else 400)


@bp.post('/images')
def upload_image():
    if 'image' not in request.files:
        return jsonify({'success': False, 'error': 'missing_file'}), 400
    file = request.files['image']
    name = secure_filename(request.form.get('name') or file.filename or '')
    if not name:
        name = f"upload-{int(time.time() * 1000)}.jpg"
    result = image_storage().upload(file.read(), f"locations/{name}", file.mimetype)
    return jsonify(result.to_dict()), (201 if result.success else 400)


@bp.delete('/images/<path:path>')
def delete_image(path: str):
    result = image_storage().delete(path)
    return jsonify(result.to_dict()), (200 if result.success else 404)
