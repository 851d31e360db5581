from sqlalchemy import Column, TIMESTAMP
from sqlalchemy.sql import func
from app.connections.database import Base


def audit_timestamp():
    # filled by the database; updated_at is maintained by a trigger on the administration side
    return Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())


class CommonModel(Base):
    """Abstract base carrying the created/updated audit columns"""
    __abstract__ = True

    created_at = audit_timestamp()
    updated_at = audit_timestamp()
