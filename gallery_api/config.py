# gallery_api/config.py
"""Réglages d'exécution, lus une fois depuis l'environnement."""

from __future__ import annotations

import os
from typing import Final

DATABASE_URL: Final = os.environ.get("GALLERY_DATABASE_URL", "sqlite:///./gallery.db")

# Les images uploadées sont écrites ici et servies sous MEDIA_URL
UPLOAD_DIR: Final = os.environ.get("GALLERY_UPLOAD_DIR", "uploads")
MEDIA_URL: Final = os.environ.get("GALLERY_MEDIA_URL", "/media")

CORS_ORIGINS: Final = [
    o.strip()
    for o in os.environ.get(
        "GALLERY_CORS_ORIGINS", "http://127.0.0.1:3000,http://localhost:3000"
    ).split(",")
    if o.strip()
]

LOG_LEVEL: Final = os.environ.get("GALLERY_LOG_LEVEL", "INFO")

NEAREST_LIMIT: Final = int(os.environ.get("GALLERY_NEAREST_LIMIT", "24"))
MAX_IMPORTANT: Final = int(os.environ.get("GALLERY_MAX_IMPORTANT", "3"))
MAX_UPLOAD_FILES: Final = int(os.environ.get("GALLERY_MAX_UPLOAD_FILES", "10"))
WORKERS: Final = int(os.environ.get("GALLERY_WORKERS", "4"))
