# gallery_api/hue_index.py
import math

import numpy as np
from sqlalchemy.orm import Session

from .config import NEAREST_LIMIT
from .errors import ValidationError
from .models import GalleryEntry

HUE_RANGE = 360


def circular_distance(a, b):
    """
    Distance angulaire sur la roue des teintes, dans [0, 180].
    Marche aussi bien sur des scalaires que sur des tableaux numpy.
    """
    d = np.abs(np.asarray(a) - np.asarray(b)) % HUE_RANGE
    return np.minimum(d, HUE_RANGE - d)


def parse_target_hue(raw) -> int:
    if raw is None or isinstance(raw, bool):
        raise ValidationError("Teinte cible manquante ou invalide.")
    try:
        hue = int(str(raw).strip())
    except ValueError:
        raise ValidationError(f"Teinte cible invalide : {raw!r}")
    return hue % HUE_RANGE


def parse_limit(raw, default: int = NEAREST_LIMIT) -> int:
    """Un nombre décimal est tronqué ("5.5" -> 5) ; sinon `default`."""
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        return default
    if not math.isfinite(value):
        return default
    limit = int(value)
    return limit if limit > 0 else default


def rank_by_hue(hues, target_hue: int, limit: int) -> np.ndarray:
    """Indices des `limit` teintes les plus proches ; égalités dans l'ordre de stockage."""
    hues = np.asarray(hues, dtype="int64")
    if hues.size == 0:
        return np.array([], dtype="int64")
    dist = circular_distance(hues, target_hue)
    return np.argsort(dist, kind="stable")[:limit]


def nearest(db: Session, target_hue: int, limit: int = NEAREST_LIMIT):
    """
    Parcours complet de toutes les galeries de tous les utilisateurs,
    tri par distance circulaire à `target_hue`.
    """
    entries = db.query(GalleryEntry).order_by(GalleryEntry.id.asc()).all()
    order = rank_by_hue([e.average_hue for e in entries], target_hue, limit)
    return [entries[int(i)] for i in order]
