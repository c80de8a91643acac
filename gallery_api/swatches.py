# gallery_api/swatches.py
"""
Génère des pastilles unies réparties sur la roue des teintes,
pratique pour remplir une galerie de test.

    python -m gallery_api.swatches --count 50 --size 200 --out ./swatches
"""
import argparse
import io
import logging
from pathlib import Path

from PIL import Image

log = logging.getLogger(__name__)


def hsv_to_rgb(h: float, s: float, v: float):
    """H dans [0, 360), S et V dans [0, 1] -> RGB 0..255."""
    h = h % 360
    c = v * s
    x = c * (1 - abs(((h / 60) % 2) - 1))
    m = v - c
    if h < 60:
        r, g, b = c, x, 0
    elif h < 120:
        r, g, b = x, c, 0
    elif h < 180:
        r, g, b = 0, c, x
    elif h < 240:
        r, g, b = 0, x, c
    elif h < 300:
        r, g, b = x, 0, c
    else:
        r, g, b = c, 0, x
    return (
        int(round((r + m) * 255)),
        int(round((g + m) * 255)),
        int(round((b + m) * 255)),
    )


def make_swatch(hue: float, size: int = 200, fmt: str = "PNG") -> bytes:
    img = Image.new("RGB", (size, size), hsv_to_rgb(hue, 1, 1))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def make_swatches(count: int = 50, size: int = 200, out_dir="./swatches"):
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    hues = [round(i * (360 / count)) for i in range(count)]
    paths = []
    for hue in hues:
        path = out / f"swatch_{hue}.png"
        path.write_bytes(make_swatch(hue, size))
        log.info("créé %s", path)
        paths.append(path)
    return paths


def main(argv=None):
    parser = argparse.ArgumentParser(description="Génère des pastilles de teintes.")
    parser.add_argument("--count", type=int, default=50)
    parser.add_argument("--size", type=int, default=200)
    parser.add_argument("--out", default="./swatches")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    make_swatches(args.count, args.size, args.out)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
