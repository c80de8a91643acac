# gallery_api/main.py
import logging
from pathlib import Path
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, Header, HTTPException, Query, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, StrictBool
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from .colors import extraction_stats
from .config import CORS_ORIGINS, LOG_LEVEL, MEDIA_URL, UPLOAD_DIR
from .database import get_db, init_db
from .errors import GalleryError
from .gallery import align_batch, delete_entry, ingest_gallery, serialize_entry
from .hue_index import nearest, parse_limit, parse_target_hue
from .importance import set_important
from .storage import LocalObjectStore, get_object_store
from .users import get_owner, search_users, serialize_user

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

app = FastAPI()

# Dossier uploads, servi sous /media
BASE_UPLOAD_DIR = Path(UPLOAD_DIR)
BASE_UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

app.mount(MEDIA_URL, StaticFiles(directory=str(BASE_UPLOAD_DIR)), name="media")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GalleryError)
async def gallery_error_handler(request, exc: GalleryError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request, exc: RequestValidationError):
    # le contrat de l'API répond 400 sur une entrée invalide, pas 422
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> int:
    # l'identité est résolue en amont (fournisseur d'identité / proxy)
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Non authentifié.")
    try:
        return int(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Identité invalide.")


def get_current_owner(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return get_owner(db, user_id)


@app.on_event("startup")
def on_startup():
    # création des tables si besoin
    init_db()
    app.state.object_store = LocalObjectStore(BASE_UPLOAD_DIR, MEDIA_URL)


@app.on_event("shutdown")
def on_shutdown():
    store = getattr(app.state, "object_store", None)
    if store is not None:
        store.close()


@app.get("/")
def root():
    return {"message": "Gallery API OK"}


# ---------------------------------------------------------------------------
# 1) Upload d'un lot d'images dans la galerie
# ---------------------------------------------------------------------------
@app.post("/gallery", status_code=201)
async def upload_gallery_images(
    images: List[UploadFile] = File(...),
    names: List[str] = Form([]),
    prices: List[str] = Form([]),
    tags: List[str] = Form([]),
    db: Session = Depends(get_db),
    owner=Depends(get_current_owner),
    store=Depends(get_object_store),
):
    files = [(f.filename or "", await f.read()) for f in images]

    # validation complète avant tout effet de bord
    items = align_batch(files, names, prices, tags)
    entries = await run_in_threadpool(ingest_gallery, db, owner, items, store)

    return {
        "message": "Galerie mise à jour",
        "galleryEntries": [serialize_entry(e) for e in entries],
    }


# ---------------------------------------------------------------------------
# 2) Galerie de l'utilisateur courant / suppression
# ---------------------------------------------------------------------------
@app.get("/gallery")
def list_gallery(owner=Depends(get_current_owner)):
    return [serialize_entry(e) for e in owner.gallery]


@app.delete("/gallery")
def remove_gallery_image(
    imageRef: str = Query(...),
    db: Session = Depends(get_db),
    owner=Depends(get_current_owner),
):
    delete_entry(db, owner, imageRef)
    return {"deleted": imageRef}


# ---------------------------------------------------------------------------
# 3) Images "importantes" (max 3)
# ---------------------------------------------------------------------------
class ImportanceUpdate(BaseModel):
    imageRef: str
    isImportant: StrictBool


@app.patch("/gallery/importance")
def update_importance(
    payload: ImportanceUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    entry = set_important(db, user_id, payload.imageRef, payload.isImportant)
    return {"updated": serialize_entry(entry)}


# ---------------------------------------------------------------------------
# 4) Recherche par teinte la plus proche, toutes galeries confondues
# ---------------------------------------------------------------------------
@app.get("/gallery/nearest")
def nearest_hue(
    hue: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    target = parse_target_hue(hue)
    entries = nearest(db, target, parse_limit(limit))
    return [serialize_entry(e) for e in entries]


# ---------------------------------------------------------------------------
# 5) Compteurs d'extraction de teinte
# ---------------------------------------------------------------------------
@app.get("/gallery/metrics")
def gallery_metrics():
    return extraction_stats.snapshot()


# ---------------------------------------------------------------------------
# 6) Utilisateurs
# ---------------------------------------------------------------------------
@app.get("/users/search")
def find_users(query: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return [serialize_user(u) for u in search_users(db, query)]


@app.get("/users/{user_id}/gallery")
def public_gallery(user_id: int, db: Session = Depends(get_db)):
    user = get_owner(db, user_id)
    return {
        "artist": serialize_user(user),
        "gallery": [serialize_entry(e) for e in user.gallery],
    }
