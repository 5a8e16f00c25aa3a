import multiprocessing
import os

# gunicorn 'visit_coupons:create_app()' -c gunicorn.conf.py
bind = os.environ.get('BIND', f":{os.environ.get('PORT', '8000')}")
workers = int(os.environ.get('WEB_CONCURRENCY', (multiprocessing.cpu_count() * 2) + 1))
threads = int(os.environ.get('GUNICORN_THREADS', '2'))
worker_class = "gthread"
# create_all() runs once in the master instead of racing in every worker
preload_app = True
forwarded_allow_ips = "*"
timeout = 30
keepalive = 75
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get('LOG_LEVEL', 'info').lower()


def post_fork(server, worker):
    # workers must not share the master's pooled connections
    from visit_coupons.models import db

    app = server.app.wsgi()
    with app.app_context():
        db.engine.dispose(close=False)
