# gallery_api/colors.py
import io
import logging
import math
import threading

import numpy as np
from PIL import Image

log = logging.getLogger(__name__)

FALLBACK_HUE = 0


class ExtractionStats:
    """Compte les extractions de teinte et celles qui ont échoué."""

    def __init__(self):
        self._lock = threading.Lock()
        self.extractions = 0
        self.failures = 0

    def record(self, failed: bool):
        with self._lock:
            self.extractions += 1
            if failed:
                self.failures += 1

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "hueExtractions": self.extractions,
                "hueExtractionFailures": self.failures,
            }

    def reset(self):
        with self._lock:
            self.extractions = 0
            self.failures = 0


extraction_stats = ExtractionStats()


def rgb_to_hue(r: float, g: float, b: float) -> int:
    """
    Teinte HSL d'un triplet RGB dans [0, 1], arrondie au degré.
    Un gris (r == g == b) donne 0.
    """
    mx = max(r, g, b)
    mn = min(r, g, b)
    delta = mx - mn

    if delta == 0:
        hue = 0.0
    elif mx == r:
        hue = 60 * (((g - b) / delta) % 6)
    elif mx == g:
        hue = 60 * ((b - r) / delta + 2)
    else:
        hue = 60 * ((r - g) / delta + 4)

    # arrondi au plus proche, 359.5+ retombe sur 0
    return int(math.floor(hue + 0.5)) % 360


def mean_color(data: bytes) -> np.ndarray:
    """Réduit l'image à un seul pixel ; renvoie son RGB dans [0, 1]."""
    with Image.open(io.BytesIO(data)) as img:
        pixel = img.convert("RGB").resize((1, 1), Image.Resampling.BOX)
        return np.asarray(pixel, dtype="float32").reshape(3) / 255.0


def compute_hue(data: bytes) -> int:
    if not data:
        raise ValueError("image vide")
    r, g, b = (float(c) for c in mean_color(data))
    return rgb_to_hue(r, g, b)


def extract_hue(data: bytes, label: str = "") -> int:
    """
    Teinte de la couleur moyenne de `data`. Des octets illisibles ou absents
    ne font jamais échouer l'appelant : l'échec est compté et on renvoie
    FALLBACK_HUE.
    """
    try:
        hue = compute_hue(data)
    except Exception as exc:
        # Pillow signale un fichier corrompu par OSError, ValueError ou
        # SyntaxError selon l'étape ; aucune ne doit arrêter le lot
        extraction_stats.record(failed=True)
        log.warning("échec extraction teinte pour %r, repli sur %d : %s", label, FALLBACK_HUE, exc)
        return FALLBACK_HUE
    extraction_stats.record(failed=False)
    return hue
