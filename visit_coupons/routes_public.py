import os

from flask import Blueprint, abort, current_app, send_from_directory

bp = Blueprint('public', __name__)


@bp.get('/health')
def health():
    return {'ok': True}


@bp.get('/storage/<bucket>/<path:path>')
def stored_file(bucket: str, path: str):
    if bucket != current_app.config['STORAGE_BUCKET']:
        abort(404)
    root = os.path.abspath(os.path.join(current_app.config['STORAGE_DIR'], bucket))
    return send_from_directory(root, path, max_age=3600)
