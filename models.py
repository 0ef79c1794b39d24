"""Shared SQLAlchemy models."""

from datetime import datetime

from extensions import db


class StoredCollection(db.Model):
    """One named collection of records, persisted as a whole JSON blob."""

    __tablename__ = "stored_collections"

    name = db.Column(db.String(64), primary_key=True)  # keys, users, keyHistory
    payload = db.Column(db.JSON, nullable=False, default=list)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<StoredCollection {self.name}>"
