# product_catalog/crud.py

"""
Data access for products.
Every read and write of the products table goes through these functions.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .models import Product

logger = logging.getLogger(__name__)

# Largest value the Integer primary key column can hold
MAX_PRODUCT_ID = 2**31 - 1


class ProductNotFoundError(Exception):
    """Raised when no product has the requested id."""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product with ID {product_id} not found")


@dataclass
class Page:
    """One page of a newest-first product listing plus what the pager needs."""

    items: List[Product]
    total: int
    page: int
    per_page: int
    # 1-based position of items[0] within the whole listing
    first_index: int = field(init=False)

    def __post_init__(self):
        self.first_index = (self.page - 1) * self.per_page + 1

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.last_page

    @property
    def previous_page(self) -> int:
        return max(1, self.page - 1)

    @property
    def next_page(self) -> int:
        return self.page + 1


def fillable_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Keep only the attributes request input is allowed to set."""
    return {key: fields[key] for key in Product.fillable if key in fields}


def list_recent(db: Session, page_size: int, page: int = 1) -> Page:
    """Return page `page` of products, newest first, `page_size` per page."""
    page = max(1, page)
    total = db.query(Product).count()
    offset = (page - 1) * page_size
    items = []
    # Pages past the end are empty; their offset may not fit the database's integers
    if offset < total:
        items = (
            db.query(Product)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .offset(offset)
            .limit(page_size)
            .all()
        )
    logger.info(f"Listed {len(items)} of {total} products (page={page}, size={page_size}).")
    return Page(items=items, total=total, page=page, per_page=page_size)


def get_product(db: Session, product_id: int) -> Product:
    product = None
    if 1 <= product_id <= MAX_PRODUCT_ID:
        product = db.get(Product, product_id)
    if product is None:
        logger.warning(f"Product with ID: {product_id} not found.")
        raise ProductNotFoundError(product_id)
    return product


def create_product(db: Session, fields: Mapping[str, Any]) -> Product:
    db_product = Product(**fillable_fields(fields))
    try:
        db.add(db_product)
        db.commit()
        db.refresh(db_product)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating product: {e}", exc_info=True)
        raise
    logger.info(f"Product '{db_product.name}' (ID: {db_product.id}) created successfully.")
    return db_product


def update_product(db: Session, product_id: int, fields: Mapping[str, Any]) -> Product:
    """Overwrite the allowed attributes of an existing product."""
    product = get_product(db, product_id)
    for key, value in fillable_fields(fields).items():
        setattr(product, key, value)
    try:
        db.add(product)
        db.commit()
        db.refresh(product)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error updating product {product_id}: {e}", exc_info=True)
        raise
    logger.info(f"Product '{product.name}' (ID: {product_id}) updated successfully.")
    return product


def delete_product(db: Session, product_id: int) -> None:
    product = get_product(db, product_id)
    try:
        db.delete(product)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting product {product_id}: {e}", exc_info=True)
        raise
    logger.info(f"Product (ID: {product_id}) deleted successfully.")
