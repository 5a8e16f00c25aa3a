import os
import sys
import base64
import requests

# Usage: LOCATION=gangnam python scripts/issue_coupon.py
# WANT_PNG=1 saves the full coupon card instead of the bare QR code.

BASE_URL = os.environ.get('BASE_URL', 'http://localhost:5000')
LOCATION = os.environ.get('LOCATION') or (sys.argv[1] if len(sys.argv) > 1 else '')

if not LOCATION:
    print('Missing LOCATION (location slug) in env or argv')
    sys.exit(1)

url = f"{BASE_URL.rstrip('/')}/api/locations/{LOCATION}/coupons"

if os.environ.get('WANT_PNG', '0') == '1':
    r = requests.post(url, headers={'Accept': 'image/png'}, timeout=30)
    if r.status_code not in (200, 201):
        print('Error:', r.status_code, r.text)
        sys.exit(1)
    out = os.environ.get('OUT', 'coupon.png')
    with open(out, 'wb') as f:
        f.write(r.content)
    print('Coupon card saved to', out)
    sys.exit(0)

# Default: JSON mode
r = requests.post(url, headers={'Accept': 'application/json'}, timeout=30)
if r.status_code != 201:
    print('Error:', r.status_code, r.text)
    sys.exit(1)
res = r.json()
print('code:', res['code'])
print('card:', res['image_url'])
if 'qr_png_b64' in res:
    out = os.environ.get('OUT', f"qr_{res['code']}.png")
    with open(out, 'wb') as f:
        f.write(base64.b64decode(res['qr_png_b64']))
    print('QR saved to', out)
