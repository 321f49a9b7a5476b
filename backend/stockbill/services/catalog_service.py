# Overview: Service-layer operations for the product catalog and its stock levels.

"""
Catalog Ledger

Owns product records and their stock quantity. Stock changes in exactly two
ways:
- adjust_stock(): direct correction by a user, clamped at zero
- reserve(): conditional decrement used by invoice creation; refuses to go
  below zero instead of clamping

Both are single atomic UPDATE statements so concurrent requests never read
a stale quantity and write it back.

The ledger is bound to an explicit SQLAlchemy session at construction time;
routes pass ``db.session`` and tests may pass any isolated session.
"""
from __future__ import annotations

import logging
import secrets
import string
import time

from sqlalchemy import case, func, or_, update
from sqlalchemy.exc import IntegrityError

from ..models import InvoiceLine, Product
from ..validation import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {"name", "category", "price_inr", "stock", "low_stock_threshold", "description", "sku"}

DEFAULT_LOW_STOCK_THRESHOLD = 10

_SKU_ALPHABET = string.digits + string.ascii_uppercase


def generate_sku(now_ms: int | None = None) -> str:
    """SKU-<epoch milliseconds>-<9 random base36 characters>."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_SKU_ALPHABET) for _ in range(9))
    return f"SKU-{now_ms}-{suffix}"


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def paginate(query, *, page: int | None, per_page: int | None, default_per_page: int, max_per_page: int) -> dict:
    """Offset pagination shared by the catalog and invoice listings."""
    per_page = min(per_page or default_per_page, max_per_page)
    per_page = max(per_page, 1)
    page = max(page or 1, 1)

    total = query.order_by(None).count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    rows = query.offset((page - 1) * per_page).limit(per_page).all()
    return {
        "rows": rows,
        "page": page,
        "per_page": per_page,
        "total": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


class CatalogLedger:
    def __init__(
        self,
        session,
        *,
        low_stock_default: int = DEFAULT_LOW_STOCK_THRESHOLD,
        default_per_page: int = 50,
        max_per_page: int = 100,
    ):
        self.session = session
        self.low_stock_default = low_stock_default
        self.default_per_page = default_per_page
        self.max_per_page = max_per_page

    def get(self, product_id: int) -> Product:
        product = self.session.get(Product, product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    def _sku_taken(self, sku: str, exclude_id: int | None = None) -> bool:
        query = self.session.query(Product.id).filter(Product.sku == sku)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        return query.first() is not None

    def create(self, patch: dict, created_by_user_id: int | None = None) -> Product:
        """
        Create a product from a validated patch dict.

        Raises:
            ConflictError: If the supplied SKU already exists
        """
        sku = patch.get("sku")
        if sku:
            if self._sku_taken(sku):
                raise ConflictError("SKU already exists")
        else:
            sku = generate_sku()
            while self._sku_taken(sku):
                sku = generate_sku()

        product = Product(
            sku=sku,
            stock=0,
            low_stock_threshold=self.low_stock_default,
            created_by_user_id=created_by_user_id,
        )
        for key, value in patch.items():
            if key in PRODUCT_MUTABLE_FIELDS and key != "sku":
                setattr(product, key, value)

        self.session.add(product)
        try:
            self.session.commit()
        except IntegrityError:
            # Lost a race with a concurrent insert of the same SKU
            self.session.rollback()
            raise ConflictError("SKU already exists")

        logger.info("Created product id=%s sku=%s", product.id, product.sku)
        return product

    def update(self, product_id: int, patch: dict) -> Product:
        """
        Partial update of mutable fields.

        Raises:
            NotFoundError: If the product does not exist
            ConflictError: If the new SKU belongs to another product
        """
        product = self.get(product_id)

        if "sku" in patch:
            sku = patch["sku"]
            if not sku:
                raise ValidationError("sku cannot be cleared")
            if sku != product.sku and self._sku_taken(sku, exclude_id=product.id):
                raise ConflictError("SKU already exists")

        for key, value in patch.items():
            if key in PRODUCT_MUTABLE_FIELDS:
                setattr(product, key, value)

        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("SKU already exists")

        logger.info("Updated product id=%s fields=%s", product.id, ",".join(sorted(patch.keys())))
        return product

    def delete(self, product_id: int) -> None:
        """
        Hard-delete a product.

        Invoice lines keep their name/SKU/price snapshot; only their loose
        product reference is cleared.
        """
        product = self.get(product_id)

        self.session.execute(
            update(InvoiceLine)
            .where(InvoiceLine.product_id == product.id)
            .values(product_id=None)
            .execution_options(synchronize_session=False)
        )
        self.session.delete(product)
        self.session.commit()
        logger.info("Deleted product id=%s", product_id)

    def adjust_stock(self, product_id: int, delta: int) -> Product:
        """
        Add ``delta`` to stock, clamping the result at zero.

        Over-subtraction is not an error: adjust_stock(p, -1000000) on a
        product holding 5 leaves it at 0.
        """
        new_stock = Product.stock + delta
        result = self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock=case((new_stock < 0, 0), else_=new_stock))
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            self.session.rollback()
            raise NotFoundError(f"Product {product_id} not found")

        self.session.commit()
        product = self.get(product_id)
        logger.info("Adjusted stock product id=%s delta=%s stock=%s", product_id, delta, product.stock)
        return product

    def reserve(self, product_id: int, quantity: int) -> bool:
        """
        Conditionally decrement stock by ``quantity``.

        Returns False (and changes nothing) when the product is missing or
        holds less than ``quantity``. Does not commit: the caller owns the
        transaction.
        """
        result = self.session.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def query(
        self,
        *,
        search: str | None = None,
        category: str | None = None,
        page: int | None = None,
        per_page: int | None = None,
    ) -> dict:
        """
        Filtered, paginated product listing (newest first).

        - search: case-insensitive substring of name or SKU
        - category: exact match; "all" disables the filter
        """
        query = self.session.query(Product)

        if search and search.strip():
            pattern = f"%{escape_like(search.strip())}%"
            query = query.filter(
                or_(
                    Product.name.ilike(pattern, escape="\\"),
                    Product.sku.ilike(pattern, escape="\\"),
                )
            )

        if category and category != "all":
            query = query.filter(Product.category == category)

        query = query.order_by(Product.created_at.desc(), Product.id.desc())

        result = paginate(
            query,
            page=page,
            per_page=per_page,
            default_per_page=self.default_per_page,
            max_per_page=self.max_per_page,
        )
        result["items"] = result.pop("rows")
        return result

    def low_stock(self) -> list[Product]:
        """All products at or below their own threshold, evaluated now."""
        return (
            self.session.query(Product)
            .filter(Product.stock <= Product.low_stock_threshold)
            .order_by(Product.stock.asc(), Product.name.asc())
            .all()
        )

    def low_stock_count(self) -> int:
        return (
            self.session.query(func.count(Product.id))
            .filter(Product.stock <= Product.low_stock_threshold)
            .scalar()
            or 0
        )

    def categories(self) -> list[str]:
        rows = self.session.query(Product.category).distinct().order_by(Product.category.asc()).all()
        return [row[0] for row in rows]
