# gallery_api/models.py
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False, default="")
    email = Column(String, unique=True, index=True, nullable=False)

    # ordre d'insertion = ordre d'affichage
    gallery = relationship(
        "GalleryEntry",
        back_populates="user",
        order_by="GalleryEntry.id",
        cascade="all, delete-orphan",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class GalleryEntry(Base):
    __tablename__ = "gallery_entries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    image_ref = Column(String, nullable=False, index=True)
    width = Column(Integer, nullable=False)
    height = Column(Integer, nullable=False)
    # copié depuis le propriétaire à la création, pas resynchronisé ensuite
    artist_name = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    is_important = Column(Boolean, nullable=False, default=False)
    important_index = Column(Integer, nullable=True, default=None)
    average_hue = Column(Integer, nullable=False)
    date_added = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="gallery")
