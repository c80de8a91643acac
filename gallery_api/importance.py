# gallery_api/importance.py
import logging
import threading

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import MAX_IMPORTANT
from .errors import CapacityExceeded, NotFoundError, UpstreamFailure
from .gallery import find_entry
from .models import GalleryEntry, User

log = logging.getLogger(__name__)

# verrous répartis par propriétaire : taille fixe, un même id tombe toujours
# sur le même verrou
LOCK_STRIPES = 64
_owner_locks = [threading.Lock() for _ in range(LOCK_STRIPES)]


def _owner_lock(owner_id: int) -> threading.Lock:
    return _owner_locks[hash(owner_id) % LOCK_STRIPES]


def set_important(
    db: Session,
    owner_id: int,
    image_ref: str,
    flag: bool,
    max_important: int = MAX_IMPORTANT,
) -> GalleryEntry:
    """
    Marque (ou démarque) une image comme "importante".

    Les index sont des tickets de place : un retrait ne renumérote pas les
    autres, un nouvel ajout prend la plus petite place libre.
    Lecture-comptage-écriture sérialisée par propriétaire.
    """
    with _owner_lock(owner_id):
        # relire l'état courant une fois le verrou pris
        db.expire_all()
        owner = (
            db.query(User)
            .filter(User.id == owner_id)
            .with_for_update()
            .one_or_none()
        )
        if owner is None:
            raise NotFoundError("Utilisateur introuvable.")
        entry = find_entry(owner, image_ref)

        if flag:
            if entry.is_important:
                return entry
            important = [e for e in owner.gallery if e.is_important]
            if len(important) >= max_important:
                raise CapacityExceeded(
                    f"Déjà {max_important} images importantes dans la galerie."
                )
            taken = {e.important_index for e in important}
            entry.important_index = next(
                i for i in range(max_important) if i not in taken
            )
            entry.is_important = True
        else:
            entry.is_important = False
            entry.important_index = None

        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            log.error("échec de mise à jour de l'importance", exc_info=True)
            raise UpstreamFailure("Base de données indisponible") from exc
    return entry
