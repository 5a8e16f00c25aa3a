import base64
import io
from flask import Blueprint, current_app, jsonify, request, send_file

from .deps import coupon_service
from .services.coupons import NOT_FOUND
from .services.images import coupon_filename, coupon_png_bytes
from .services.qr import make_qr_bytes

bp = Blueprint('generator', __name__)


def _card_png(code: str) -> bytes:
    cfg = current_app.config
    return coupon_png_bytes(code, cfg.get('COUPON_BACKGROUND_PATH'), cfg.get('COUPON_FONT_PATH'))


@bp.get('/locations')
def list_locations():
    locations = coupon_service().get_all_locations()
    return jsonify({'locations': [loc.to_dict() for loc in locations]})


@bp.get('/locations/<slug>')
def get_location(slug: str):
    location = coupon_service().get_location_by_slug(slug)
    if location is None:
        return jsonify({'error': 'unknown_location'}), 404
    return jsonify(location.to_dict())


@bp.get('/locations/<slug>/stores')
def list_location_stores(slug: str):
    svc = coupon_service()
    if svc.get_location_by_slug(slug) is None:
        return jsonify({'error': 'unknown_location'}), 404
    stores = svc.get_stores_by_location(slug)
    return jsonify({'stores': [s.to_dict(with_location=False) for s in stores]})


@bp.post('/locations/<slug>/coupons')
def issue_coupon(slug: str):
    result = coupon_service().issue_for_location(slug)
    if not result.success:
        status = 404 if result.error_code == NOT_FOUND else 500
        return jsonify(result.to_dict()), status

    accept = request.headers.get('Accept', '')
    if 'image/png' in accept:
        return send_file(
            io.BytesIO(_card_png(result.code)), mimetype='image/png', as_attachment=True,
            download_name=coupon_filename(result.location.name, result.code), etag=False,
        )

    data = result.to_dict()
    data['qr_png_b64'] = base64.b64encode(make_qr_bytes(result.code)).decode('ascii')
    data['image_url'] = f"{current_app.config.get('BASE_URL')}/api/locations/{slug}/coupons/{result.code}/image"
    return jsonify(data), 201


@bp.get('/locations/<slug>/coupons/<code>/image')
def coupon_image(slug: str, code: str):
    svc = coupon_service()
    location = svc.get_location_by_slug(slug)
    coupon = svc.get_coupon_details(code)
    if location is None or coupon is None or coupon.location_id != location.id:
        return jsonify({'error': 'unknown_coupon'}), 404
    return send_file(
        io.BytesIO(_card_png(coupon.code)), mimetype='image/png', as_attachment=True,
        download_name=coupon_filename(location.name, coupon.code), etag=False,
    )
