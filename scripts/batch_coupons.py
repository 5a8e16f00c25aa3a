#!/usr/bin/env python3
import os, sys, csv, io
import argparse
import pathlib
import requests
from PIL import Image

# Batch-issue coupons for one location through the generator API.
# Outputs: coupon card PNGs, a CSV index and an optional A4 PDF sheet.

def parse_args():
    p = argparse.ArgumentParser(description='Issue a batch of visit coupons for printing')
    p.add_argument('--base-url', default=os.environ.get('BASE_URL', 'http://localhost:5000'), help='Service base URL')
    p.add_argument('--location', default=os.environ.get('LOCATION'), help='location slug (env LOCATION)')
    p.add_argument('--count', type=int, default=int(os.environ.get('COUNT', '10')), help='number of coupons to issue')
    p.add_argument('--out', default='out', help='output directory root (default: out)')
    p.add_argument('--no-pdf', action='store_true', help='skip generating a combined A4 PDF sheet')
    return p.parse_args()


def issue_one(base_url: str, location: str):
    url = f"{base_url.rstrip('/')}/api/locations/{location}/coupons"
    r = requests.post(url, headers={'Accept': 'application/json'}, timeout=30)
    if r.status_code != 201:
        raise RuntimeError(f"issue failed {r.status_code}: {r.text[:200]}")
    data = r.json()
    card = requests.get(data['image_url'], timeout=30)
    if card.status_code != 200:
        raise RuntimeError(f"card download failed {card.status_code} for {data['code']}")
    return data['code'], card.content


def save_pdf_sheet(images: list[Image.Image], out_pdf: pathlib.Path, cols=2, rows=3, margin=50):
    if not images:
        return
    # A4 at 300 DPI is about 2480x3508 px
    page_w, page_h = 2480, 3508
    side = min((page_w - margin * (cols + 1)) // cols, (page_h - margin * (rows + 1)) // rows)
    per_page = cols * rows
    pages = []
    for start in range(0, len(images), per_page):
        page = Image.new('RGB', (page_w, page_h), color=(255, 255, 255))
        for n, card in enumerate(images[start:start + per_page]):
            r, c = divmod(n, cols)
            x = margin + c * (side + margin)
            y = margin + r * (side + margin)
            page.paste(card.resize((side, side), Image.LANCZOS), (x, y))
        pages.append(page)
    pages[0].save(out_pdf, save_all=True, append_images=pages[1:], resolution=300)


def main():
    args = parse_args()
    if not args.location:
        print('ERROR: missing --location or env LOCATION', file=sys.stderr)
        sys.exit(1)
    out_root = pathlib.Path(args.out) / args.location
    png_dir = out_root / 'png'
    png_dir.mkdir(parents=True, exist_ok=True)

    rows = []
    cards = []
    print(f"Issuing {args.count} coupons for {args.location} at {args.base_url}")
    for i in range(args.count):
        try:
            code, png_bytes = issue_one(args.base_url, args.location)
        except (requests.RequestException, RuntimeError) as e:
            print(f"[{i+1}/{args.count}] ERROR: {e}", file=sys.stderr)
            sys.exit(2)
        png_path = png_dir / f"coupon_{code}.png"
        png_path.write_bytes(png_bytes)
        rows.append({'code': code, 'location': args.location, 'png': str(png_path.relative_to(out_root))})
        cards.append(Image.open(io.BytesIO(png_bytes)).convert('RGB'))
        print(f"[{i+1}/{args.count}] {code}")

    csv_path = out_root / 'coupons.csv'
    with open(csv_path, 'w', newline='') as f:
        w = csv.DictWriter(f, fieldnames=['code', 'location', 'png'])
        w.writeheader()
        w.writerows(rows)

    if not args.no_pdf:
        pdf_path = out_root / 'coupons.pdf'
        save_pdf_sheet(cards, pdf_path)
        print(f"Wrote PDF: {pdf_path}")

    print(f"Done. CSV: {csv_path}\nPNG dir: {png_dir}")


if __name__ == '__main__':
    main()
