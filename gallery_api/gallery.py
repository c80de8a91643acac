# gallery_api/gallery.py
import json
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .colors import extract_hue
from .config import MAX_UPLOAD_FILES, WORKERS
from .errors import NotFoundError, UpstreamFailure, ValidationError
from .models import GalleryEntry, User

log = logging.getLogger(__name__)


@dataclass
class IngestItem:
    """Une image et ses métadonnées, validées ensemble."""

    data: bytes
    filename: str
    name: str
    price: float
    tags: List[str] = field(default_factory=list)


def _as_list(value) -> list:
    # un scalaire seul compte comme une séquence d'un élément
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _parse_price(value, position: int) -> float:
    try:
        price = float(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"Prix invalide pour l'image {position + 1} : {value!r}")
    if not math.isfinite(price) or price < 0:
        raise ValidationError(f"Prix invalide pour l'image {position + 1} : {value!r}")
    return price


def _parse_tags(value) -> List[str]:
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                value = json.loads(text)
            except ValueError:
                raise ValidationError(f"Tags illisibles : {value!r}")
    tags = []
    for tag in _as_list(value):
        tag = str(tag).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def align_batch(
    files: Sequence[Tuple[str, bytes]],
    names=None,
    prices=None,
    tags=None,
    max_files: int = MAX_UPLOAD_FILES,
) -> List[IngestItem]:
    """
    Assemble N fichiers et les N métadonnées parallèles en une seule liste
    d'IngestItem. Toute différence de longueur rejette le lot entier.
    """
    files = list(files)
    if not files:
        raise ValidationError("Aucune image reçue.")
    if len(files) > max_files:
        raise ValidationError(f"Maximum {max_files} images par envoi.")

    names, prices, tags = _as_list(names), _as_list(prices), _as_list(tags)
    for label, values in (("names", names), ("prices", prices), ("tags", tags)):
        if len(values) != len(files):
            raise ValidationError(
                f"{len(files)} image(s) mais {len(values)} valeur(s) pour '{label}'."
            )

    items = []
    for i, ((filename, data), name, price, tag) in enumerate(zip(files, names, prices, tags)):
        items.append(
            IngestItem(
                data=data,
                filename=filename or "",
                name="" if name is None else str(name).strip(),
                price=_parse_price(price, i),
                tags=_parse_tags(tag),
            )
        )
    return items


def _upload(store, item: IngestItem):
    try:
        return store.upload(item.data, item.filename)
    except UpstreamFailure:
        raise
    except Exception as exc:
        log.error("upload échoué pour %r", item.filename, exc_info=True)
        raise UpstreamFailure("Stockage d'images indisponible") from exc


def build_entries(owner: User, items: List[IngestItem], store, workers: int = WORKERS) -> List[GalleryEntry]:
    """
    Construit les entrées (non persistées) du lot : upload et teinte de
    chaque image en parallèle, ordre d'entrée conservé.
    """
    offset = len(owner.gallery)
    artist_name = owner.full_name
    now = datetime.now(timezone.utc)

    with ThreadPoolExecutor(max_workers=max(1, min(workers, len(items)))) as pool:
        hue_futures = [pool.submit(extract_hue, item.data, item.filename) for item in items]
        upload_futures = [pool.submit(_upload, store, item) for item in items]
    # le with attend toutes les tâches ; une erreur d'upload annule le lot
    stored = [f.result() for f in upload_futures]
    hues = [f.result() for f in hue_futures]

    entries = []
    for i, (item, image, hue) in enumerate(zip(items, stored, hues)):
        entries.append(
            GalleryEntry(
                name=item.name or f"Artwork {offset + i + 1}",
                image_ref=image.url,
                width=image.width,
                height=image.height,
                artist_name=artist_name,
                price=item.price,
                tags=list(item.tags),
                is_important=False,
                important_index=None,
                average_hue=hue,
                date_added=now,
            )
        )
    return entries


def ingest_gallery(db: Session, owner: User, items: List[IngestItem], store) -> List[GalleryEntry]:
    entries = build_entries(owner, items, store)
    log.info("ajout de %d image(s) à la galerie de l'utilisateur %s", len(entries), owner.id)

    # un seul commit : le lot est visible en entier ou pas du tout
    owner.gallery.extend(entries)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        log.error("échec de persistance du lot", exc_info=True)
        raise UpstreamFailure("Base de données indisponible") from exc
    return entries


def find_entry(owner: User, image_ref: str) -> GalleryEntry:
    for entry in owner.gallery:
        if entry.image_ref == image_ref:
            return entry
    raise NotFoundError("Image introuvable dans la galerie.")


def delete_entry(db: Session, owner: User, image_ref: str):
    entry = find_entry(owner, image_ref)
    owner.gallery.remove(entry)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise UpstreamFailure("Base de données indisponible") from exc


def serialize_entry(entry: GalleryEntry) -> dict:
    return {
        "id": entry.id,
        "name": entry.name,
        "imageRef": entry.image_ref,
        "width": entry.width,
        "height": entry.height,
        "artistName": entry.artist_name,
        "price": entry.price,
        "tags": list(entry.tags or []),
        "isImportant": bool(entry.is_important),
        "importantIndex": entry.important_index,
        "averageHue": entry.average_hue,
        "dateAdded": entry.date_added.isoformat() if entry.date_added else None,
    }
