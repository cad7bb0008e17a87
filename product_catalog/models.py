# product_catalog/models.py

"""
SQLAlchemy database models for the Product Catalog.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text

from .db import Base


def utcnow():
    return datetime.now(timezone.utc)


class Product(Base):
    """
    SQLAlchemy model for the 'products' table.
    A product is just a name and a free-text detail.
    """

    __tablename__ = "products"

    # Only these attributes may be set from request input.
    fillable = ("name", "detail")

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Product name: Required, max 255 chars.
    name = Column(String(255), nullable=False)

    # Product detail: Required, unbounded text.
    detail = Column(Text, nullable=False)

    # Set in Python rather than by the server so the listing order and
    # update refresh have microsecond resolution on every backend.
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}')>"
