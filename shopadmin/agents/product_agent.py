"""Product Agent: product and stock CRUD against the database.

Bulk operations (stock overwrite for every product, delete of every product)
are recognised from the explicit ``scope == "all"`` flag first and from
bulk phrases in the name field as a fallback. Deleting every product only
runs once the planner has set ``confirmDeleteAll``.
"""
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .base_agent import BaseAgent
from ..data.models import Product, ProductStock, Purchase
from ..data.product_store import resolve_product, search_products, set_stock
from ..nlu.rules import CONFIRM_DELETE_ALL_PHRASE, is_bulk_phrase
from ..schemas.action_models import (
    ProductCreateParams,
    ProductDeleteParams,
    ProductReadParams,
    ProductUpdateParams,
)
from ..schemas.io_models import ActionResult, AppUser, ResultStatus
from ..utils.logger import get_logger

logger = get_logger("product")

NOT_FOUND = "The product you mentioned was not found."


class ProductAgent(BaseAgent):
    name = "product"

    def handle(self, operation: str, params, user: AppUser, db: Session) -> ActionResult:
        logger.info("%s by user #%s: %s", operation, user.id, params.model_dump(exclude_none=True))
        handlers = {
            "create": self._create,
            "read": self._read,
            "update": self._update,
            "delete": self._delete,
        }
        return handlers[operation](params, db)

    # --- create ---

    def _create(self, p: ProductCreateParams, db: Session) -> ActionResult:
        if not p.name or not p.category or p.price is None:
            return self._result("create", ResultStatus.invalid,
                                "Incomplete command. Give at least the product name, category and price.")
        if p.price < 0:
            return self._result("create", ResultStatus.invalid, "Price cannot be negative.")
        if p.initial_stock is not None and p.initial_stock < 0:
            return self._result("create", ResultStatus.invalid, "Initial stock cannot be negative.")

        try:
            product = Product(name=p.name, category=p.category, price=p.price, description=p.description)
            db.add(product)
            self._step(db)
            product_id = product.id
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to insert product %r", p.name)
            return self._result("create", ResultStatus.failed, "Failed to add the product to the database.")

        if p.initial_stock is not None:
            try:
                db.add(ProductStock(product_id=product_id, quantity=p.initial_stock))
                self._step(db)
            except SQLAlchemyError:
                db.rollback()
                logger.exception("Failed to insert initial stock for product #%s", product_id)
                if self.atomic_writes:
                    return self._result("create", ResultStatus.failed,
                                        f'Failed to add product "{p.name}": its initial stock could not be saved, so nothing was written.')
                return self._result("create", ResultStatus.partial,
                                    f'Product "{p.name}" was created with id {product_id}, but its initial stock could not be saved.',
                                    product_id=product_id)

        try:
            self._finish(db)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Commit failed while creating product %r", p.name)
            return self._result("create", ResultStatus.failed, "Failed to add the product to the database.")

        message = f'Product "{p.name}" was added with id {product_id}.'
        if p.initial_stock is not None:
            message += f" Initial stock: {p.initial_stock}."
        return self._ok("create", message, product_id=product_id)

    # --- read ---

    def _read(self, p: ProductReadParams, db: Session) -> ActionResult:
        text = p.query or p.name
        try:
            products = search_products(db, product_id=p.id, text=text)
        except SQLAlchemyError:
            logger.exception("Failed to read products")
            return self._result("read", ResultStatus.failed, "Failed to fetch product data.")

        if not products:
            return self._result("read", ResultStatus.not_found, "No products match the request.")

        lines = []
        for product in products:
            qty = product.stock.quantity if product.stock else 0
            lines.append(f"#{product.id} {product.name} ({product.category}) - {self._price(product.price)} | stock: {qty}")
        return self._ok("read", "Here are the products:\n" + "\n".join(lines),
                        product_ids=[product.id for product in products])

    # --- update ---

    def _update(self, p: ProductUpdateParams, db: Session) -> ActionResult:
        has_stock = p.new_stock is not None
        if has_stock and p.new_stock < 0:
            return self._result("update", ResultStatus.invalid, "Stock cannot be negative.")

        bulk_requested = p.scope == "all" or is_bulk_phrase(p.name)
        if bulk_requested or (not p.id and not p.name and has_stock):
            if not has_stock:
                return self._result("update", ResultStatus.invalid,
                                    "Updating all products at once only supports setting their stock. Tell me the new stock value.")
            return self._bulk_stock(p.new_stock, db)

        product = resolve_product(db, p.id, p.name)
        if product is None:
            return self._result("update", ResultStatus.not_found, NOT_FOUND)
        product_id = product.id

        fields = {}
        if p.new_name:
            fields["name"] = p.new_name
        if p.new_category:
            fields["category"] = p.new_category
        if p.new_price is not None:
            if p.new_price < 0:
                return self._result("update", ResultStatus.invalid, "Price cannot be negative.")
            fields["price"] = p.new_price
        if p.new_description is not None:
            fields["description"] = p.new_description

        if not fields and not has_stock:
            return self._result("update", ResultStatus.invalid,
                                "Nothing to update. Tell me the new name, category, price, description or stock.")

        if fields:
            try:
                for key, value in fields.items():
                    setattr(product, key, value)
                self._step(db)
            except SQLAlchemyError:
                db.rollback()
                logger.exception("Failed to update product #%s", product_id)
                return self._result("update", ResultStatus.failed, "Failed to update the product data.")

        if has_stock:
            try:
                set_stock(db, product_id, p.new_stock)
                self._step(db)
            except SQLAlchemyError:
                db.rollback()
                logger.exception("Failed to write stock for product #%s", product_id)
                if fields and not self.atomic_writes:
                    return self._result("update", ResultStatus.partial,
                                        f"Product #{product_id} was updated, but its stock could not be saved.",
                                        product_id=product_id)
                return self._result("update", ResultStatus.failed,
                                    f"Failed to update the stock of product #{product_id}; no changes were saved.")

        try:
            self._finish(db)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Commit failed while updating product #%s", product_id)
            return self._result("update", ResultStatus.failed, "Failed to update the product data.")

        changes = [f"{key} -> {self._price(value) if key == 'price' else value}" for key, value in fields.items()]
        if has_stock:
            changes.append(f"stock -> {p.new_stock}")
        return self._ok("update", f"Product #{product_id} was updated ({', '.join(changes)}).", product_id=product_id)

    def _bulk_stock(self, quantity: int, db: Session) -> ActionResult:
        """Overwrite (not add to) the stock of every product."""
        try:
            existing = {row.product_id: row for row in db.query(ProductStock).all()}
            product_ids = [row.id for row in db.query(Product.id).all()]
            for product_id in product_ids:
                if product_id in existing:
                    existing[product_id].quantity = quantity
                else:
                    db.add(ProductStock(product_id=product_id, quantity=quantity))
            self._step(db)
            self._finish(db)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Bulk stock update failed")
            return self._result("update", ResultStatus.failed, "Failed to update the stock of all products.")

        logger.info("stock of %d products set to %d", len(product_ids), quantity)
        return self._ok("update", f"Stock for all products has been set to {quantity}.",
                        scope="all", updated=len(product_ids))

    # --- delete ---

    def _delete(self, p: ProductDeleteParams, db: Session) -> ActionResult:
        if p.scope == "all" or is_bulk_phrase(p.name):
            if not p.confirm_delete_all:
                return self._result(
                    "delete", ResultStatus.confirmation_required,
                    "I detected a request to delete ALL products, but it has not been confirmed. "
                    f"This cannot be undone. If you are sure, send exactly: {CONFIRM_DELETE_ALL_PHRASE}",
                )
            return self._delete_all(db)

        product = resolve_product(db, p.id, p.name)
        if product is None:
            return self._result("delete", ResultStatus.not_found, NOT_FOUND)
        product_id, product_name = product.id, product.name

        try:
            db.query(ProductStock).filter(ProductStock.product_id == product_id).delete(synchronize_session=False)
            self._step(db)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to delete stock of product #%s", product_id)
            return self._result("delete", ResultStatus.failed,
                                f"Failed to delete the stock of product #{product_id}; the product was not deleted.")

        try:
            db.query(Purchase).filter(Purchase.product_id == product_id).update(
                {Purchase.product_id: None}, synchronize_session=False)
            db.query(Product).filter(Product.id == product_id).delete(synchronize_session=False)
            self._step(db)
            self._finish(db)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to delete product #%s", product_id)
            if not self.atomic_writes:
                return self._result("delete", ResultStatus.partial,
                                    f"The stock of product #{product_id} was removed, but the product itself could not be deleted.")
            return self._result("delete", ResultStatus.failed, "Failed to delete the product from the database.")

        return self._ok("delete", f'Product #{product_id} ("{product_name}") was deleted.', product_id=product_id)

    def _delete_all(self, db: Session) -> ActionResult:
        try:
            stock_rows = db.query(ProductStock).delete(synchronize_session=False)
            self._step(db)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to delete stock rows during delete-all")
            return self._result("delete", ResultStatus.failed,
                                "Failed to delete product stock while deleting all products; no products were deleted.")

        try:
            db.query(Purchase).filter(Purchase.product_id.isnot(None)).update(
                {Purchase.product_id: None}, synchronize_session=False)
            products = db.query(Product).delete(synchronize_session=False)
            self._step(db)
            self._finish(db)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to delete product rows during delete-all")
            if not self.atomic_writes:
                return self._result("delete", ResultStatus.partial,
                                    "All stock rows were deleted, but an error occurred while deleting the products.")
            return self._result("delete", ResultStatus.failed,
                                "An error occurred while deleting all products; nothing was deleted.")

        logger.warning("deleted ALL products (%d) and stock rows (%d)", products, stock_rows)
        return self._ok("delete", "All products and their stock have been deleted from the database.",
                        scope="all", products_deleted=products, stock_rows_deleted=stock_rows)
