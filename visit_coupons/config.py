import os

from dotenv import load_dotenv

load_dotenv()


def _read_secret(*paths):
    for p in paths:
        try:
            with open(p, 'r') as f:
                return f.read().strip()
        except OSError:
            continue
    return None


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///local.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ADMIN_API_KEY = os.environ.get('ADMIN_API_KEY')
    BASE_URL = os.environ.get('BASE_URL', 'http://localhost:5000')
    REDIS_URL = os.environ.get('REDIS_URL', 'redis://localhost:6379/0')
    USE_REDIS = os.environ.get('USE_REDIS', '1').lower() not in ('0', 'false', 'no')
    RATE_LIMIT_VALIDATE = int(os.environ.get('RATE_LIMIT_VALIDATE', '20'))
    RATE_LIMIT_WINDOW = int(os.environ.get('RATE_LIMIT_WINDOW', '60'))
    STORAGE_DIR = os.environ.get('STORAGE_DIR', 'storage')
    STORAGE_BUCKET = os.environ.get('STORAGE_BUCKET', 'artwork-image')
    MAX_IMAGE_BYTES = int(os.environ.get('MAX_IMAGE_BYTES', str(10 * 1024 * 1024)))
    COUPON_BACKGROUND_PATH = os.environ.get('COUPON_BACKGROUND_PATH')
    COUPON_FONT_PATH = os.environ.get('COUPON_FONT_PATH')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    def __init__(self, **overrides):
        # Secret Files on Render are mounted under /etc/secrets
        if (not self.SECRET_KEY) or self.SECRET_KEY == 'dev':
            self.SECRET_KEY = _read_secret('/etc/secrets/secret_key') or self.SECRET_KEY
        if not self.ADMIN_API_KEY:
            self.ADMIN_API_KEY = _read_secret('/etc/secrets/admin_api_key', 'admin_api_key')
        for key, value in overrides.items():
            setattr(self, key, value)
