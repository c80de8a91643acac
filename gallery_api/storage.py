# gallery_api/storage.py
import io
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from fastapi import Request
from PIL import Image

from .errors import UpstreamFailure

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredImage:
    url: str
    width: int
    height: int


class LocalObjectStore:
    """
    Stockage d'images sur disque, servi en statique sous `media_url`.
    Même contrat qu'un hébergeur distant : octets en entrée,
    URL durable + dimensions en sortie.
    """

    def __init__(self, root, media_url: str = "/media", folder: str = "gallery"):
        self.root = Path(root)
        self.media_url = media_url.rstrip("/")
        self.folder = folder
        (self.root / folder).mkdir(parents=True, exist_ok=True)

    def upload(self, data: bytes, filename: str = "") -> StoredImage:
        try:
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
        except (OSError, ValueError) as exc:
            raise UpstreamFailure(f"Image refusée par le stockage : {filename or '?'}") from exc

        ext = Path(filename).suffix.lower() or ".png"
        stored_name = f"{uuid.uuid4().hex}{ext}"
        path = self.root / self.folder / stored_name
        try:
            path.write_bytes(data)
        except OSError as exc:
            log.error("écriture impossible : %s", path, exc_info=True)
            raise UpstreamFailure("Stockage d'images indisponible") from exc

        return StoredImage(
            url=f"{self.media_url}/{self.folder}/{stored_name}",
            width=width,
            height=height,
        )

    def close(self):
        # rien à libérer pour le disque local
        pass


def get_object_store(request: Request):
    # construit une seule fois au démarrage, voir main.on_startup
    return request.app.state.object_store
