import os, sys, pathlib
# Ensure project root is on PYTHONPATH when running directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from visit_coupons import create_app
from visit_coupons.deps import catalog_service

LOCATIONS = [
    {'id': 'loc-gangnam', 'name': 'Gangnam Square', 'slug': 'gangnam', 'description': 'Sculpture garden by the station'},
    {'id': 'loc-patu', 'name': 'Patu Event', 'slug': 'patu-event', 'description': 'Pop-up festival booth'},
]
STORES = [
    {'id': 'store-cafe-gangnam', 'name': 'Cafe Gangnam', 'slug': 'store-cafe-gangnam', 'location_id': 'loc-gangnam'},
    {'id': 'store-bakery-gangnam', 'name': 'Gangnam Bakery', 'slug': 'bakery-gangnam', 'location_id': 'loc-gangnam'},
    {'id': 'store-patu-booth', 'name': 'Patu Booth', 'slug': 'patu-booth', 'location_id': 'loc-patu'},
]

app = create_app()
with app.app_context():
    catalog = catalog_service()
    for data in LOCATIONS:
        res = catalog.create_location(data)
        print('location', data['slug'], 'ok' if res.success else res.error)
    for data in STORES:
        res = catalog.create_store(data)
        print('store', data['slug'], 'ok' if res.success else res.error)

    base = os.environ.get('BASE_URL', 'http://localhost:5000')
    print('Issue a coupon:', f"curl -X POST {base}/api/locations/gangnam/coupons")
    print('Validate it:   ', f"curl -X POST -H 'Content-Type: application/json' -d '{{\"code\": \"...\"}}' {base}/api/stores/store-cafe-gangnam/validate")
