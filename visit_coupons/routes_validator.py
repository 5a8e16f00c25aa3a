from flask import Blueprint, current_app, jsonify, request

from .deps import coupon_service, stats_service
from .services.coupons import BACKEND_ERROR, INVALID_INPUT, NOT_FOUND
from .services.qr import QRDecodeError, decode_qr
from .services.rate_limit import check_rate_ip

bp = Blueprint('validator', __name__)

_ERROR_STATUS = {INVALID_INPUT: 400, NOT_FOUND: 404, BACKEND_ERROR: 503}


def _client_ip():
    return request.remote_addr or '0.0.0.0'


@bp.get('/stores/<slug>')
def get_store(slug: str):
    store = coupon_service().get_store_by_slug(slug)
    if store is None:
        return jsonify({'error': 'unknown_store'}), 404
    return jsonify(store.to_dict())


@bp.get('/stores/<slug>/stats')
def store_stats(slug: str):
    result = stats_service().get_store_stats(slug)
    return jsonify(result.to_dict()), (200 if result.success else 404)


@bp.post('/stores/<slug>/validate')
def validate(slug: str):
    check_rate_ip('validate', _client_ip())
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    code = data.get('code') or request.form.get('code') or ''
    result = coupon_service().validate_code_at_store(code, slug)
    if not result.success:
        return jsonify(result.to_dict()), _ERROR_STATUS.get(result.error_code, 400)
    return jsonify(result.to_dict())


@bp.post('/decode')
def decode():
    # multipart/form-data with file field 'image'
    check_rate_ip('decode', _client_ip())
    if 'image' not in request.files:
        return jsonify({'ok': False, 'error': 'missing_file'}), 400
    file = request.files['image']
    if file.mimetype and not file.mimetype.startswith('image/'):
        return jsonify({'ok': False, 'error': 'Only image files can be scanned.'}), 400
    data = file.read()
    if not data:
        return jsonify({'ok': False, 'error': 'empty_file'}), 400
    if len(data) > current_app.config['MAX_IMAGE_BYTES']:
        return jsonify({'ok': False, 'error': 'image_too_large'}), 413
    try:
        result = decode_qr(data)
    except QRDecodeError as e:
        return jsonify({'ok': False, 'error': str(e)}), 422
    return jsonify(result.to_dict())
