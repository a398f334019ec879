"""SQLAlchemy ORM base for the sync state tables."""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# Constraint naming convention
_NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base shared by SyncMetaModel, PendingChangeModel and SyncHistoryModel."""

    metadata = MetaData(naming_convention=_NAMING_CONVENTION)
