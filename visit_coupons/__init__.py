import logging

from flask import Flask, jsonify
from flask_migrate import Migrate
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .models import db
from .services import rate_limit
from .services.rate_limit import RateLimitExceeded


def create_app(config=None):
    if config is None:
        config = Config()
    app = Flask(__name__)
    app.config.from_object(config)
    level = app.config.get('LOG_LEVEL', 'INFO')
    if not logging.getLogger().handlers:
        logging.basicConfig(format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    logging.getLogger(__name__).setLevel(level)

    db.init_app(app)
    Migrate(app, db)
    rate_limit.init_app(app)
    # Trust reverse proxy headers (Render/Heroku)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    with app.app_context():
        db.create_all()

    from .routes_public import bp as public_bp
    from .routes_generator import bp as generator_bp
    from .routes_validator import bp as validator_bp
    from .routes_admin import bp as admin_bp
    app.register_blueprint(public_bp)
    app.register_blueprint(generator_bp, url_prefix='/api')
    app.register_blueprint(validator_bp, url_prefix='/api')
    app.register_blueprint(admin_bp, url_prefix='/admin')

    @app.errorhandler(RateLimitExceeded)
    def rate_exceeded(e):
        resp = jsonify({'success': False, 'error': 'Too many attempts, please wait a moment.'})
        resp.status_code = 429
        resp.headers['Retry-After'] = str(max(1, e.retry_after))
        return resp

    return app
