import os
import struct
import tempfile
import threading
import zlib

import pytest

# avant l'import de l'app : uploads et base hors du dépôt
os.environ.setdefault("GALLERY_UPLOAD_DIR", tempfile.mkdtemp(prefix="gallery_uploads_"))
os.environ.setdefault("GALLERY_DATABASE_URL", "sqlite://")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from gallery_api.colors import extraction_stats  # noqa: E402
from gallery_api.database import get_db  # noqa: E402
from gallery_api.errors import UpstreamFailure  # noqa: E402
from gallery_api.main import app  # noqa: E402
from gallery_api.models import Base, User  # noqa: E402
from gallery_api.storage import StoredImage, get_object_store  # noqa: E402


class FakeObjectStore:
    """Stockage en mémoire ; `fail_on` fait échouer l'upload d'un nom de fichier."""

    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.uploads = []
        self._lock = threading.Lock()

    def upload(self, data, filename=""):
        if self.fail_on is not None and filename == self.fail_on:
            raise UpstreamFailure("upload refusé")
        with self._lock:
            self.uploads.append(filename)
            n = len(self.uploads)
        return StoredImage(url=f"/media/gallery/fake_{n}_{filename}", width=200, height=100)

    def close(self):
        pass


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def _reset_stats():
    extraction_stats.reset()
    yield


@pytest.fixture
def store():
    return FakeObjectStore()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(first_name="Ada", last_name="Lovelace"):
        counter["n"] += 1
        user = User(
            first_name=first_name,
            last_name=last_name,
            email=f"user{counter['n']}@example.com",
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def client(session_factory, store):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_object_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def store_factory():
    return FakeObjectStore


def _png_chunk(kind: bytes, payload: bytes) -> bytes:
    return (
        struct.pack(">I", len(payload))
        + kind
        + payload
        + struct.pack(">I", zlib.crc32(kind + payload) & 0xFFFFFFFF)
    )


@pytest.fixture
def broken_png():
    """PNG rouge 64x64 en deux IDAT, le type du second chunk est corrompu.

    L'en-tête se lit (taille connue), le décodage des pixels échoue.
    """
    raw = b"".join(b"\x00" + b"\xff\x00\x00" * 64 for _ in range(64))
    compressed = zlib.compress(raw)
    half = len(compressed) // 2
    header = struct.pack(">IIBBBBB", 64, 64, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", compressed[:half])
        + _png_chunk(b"\x00\x01\x02\x03", compressed[half:])
        + _png_chunk(b"IEND", b"")
    )
