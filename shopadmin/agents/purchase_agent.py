"""Purchase Agent: records purchases and keeps product stock in step with them.

Stock is debited once when a purchase is created (always CONFIRMED) and
credited back once when it moves CONFIRMED -> CANCELLED. Deleting a purchase
never touches stock.
"""
import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .base_agent import BaseAgent
from ..app.config import Config
from ..data.models import Purchase, PurchaseStatus
from ..data.product_store import resolve_product, set_stock, stock_quantity
from ..schemas.action_models import (
    PurchaseCreateParams,
    PurchaseDeleteParams,
    PurchaseReadParams,
    PurchaseUpdateParams,
)
from ..schemas.io_models import ActionResult, AppUser, ResultStatus
from ..utils.logger import get_logger

logger = get_logger("purchase")


class PurchaseAgent(BaseAgent):
    name = "purchase"

    def handle(self, operation: str, params, user: AppUser, db: Session) -> ActionResult:
        logger.info("%s by user #%s: %s", operation, user.id, params.model_dump(exclude_none=True))
        if operation == "create":
            return self._create(params, db)
        if operation == "read":
            return self._read(params, db)
        if operation == "update":
            return self._update(params, user, db)
        return self._delete(params, db)

    def _get(self, db: Session, purchase_id: int):
        return db.query(Purchase).filter(Purchase.id == purchase_id).first()

    # --- create ---

    def _create(self, p: PurchaseCreateParams, db: Session) -> ActionResult:
        if p.quantity is None:
            return self._result("create", ResultStatus.invalid, "The purchase quantity was not specified.")
        if p.quantity <= 0:
            return self._result("create", ResultStatus.invalid, "Purchase quantity must be a positive number.")

        product = resolve_product(db, p.product_id, p.product_name)
        if product is None:
            return self._result("create", ResultStatus.not_found, "The product you mentioned was not found.")
        product_id, product_name, unit_price = product.id, product.name, product.price

        available = stock_quantity(db, product_id)
        if available < p.quantity:
            return self._result("create", ResultStatus.invalid,
                                f"Not enough stock for this purchase (available: {available}, requested: {p.quantity}).")

        # priced once, at the product's current price
        total_price = unit_price * p.quantity

        try:
            purchase = Purchase(
                product_id=product_id,
                buyer_name=p.buyer_name,
                quantity=p.quantity,
                total_price=total_price,
                status=PurchaseStatus.CONFIRMED,
            )
            db.add(purchase)
            self._step(db)
            purchase_id = purchase.id
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to insert purchase for product #%s", product_id)
            return self._result("create", ResultStatus.failed, "Failed to record the purchase.")

        try:
            set_stock(db, product_id, available - p.quantity)
            self._step(db)
            self._finish(db)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to decrement stock for purchase #%s", purchase_id)
            if self.atomic_writes:
                return self._result("create", ResultStatus.failed,
                                    "Failed to update stock for this purchase, so the purchase was not recorded.")
            return self._result("create", ResultStatus.partial,
                                f"Purchase #{purchase_id} was recorded, but the stock could not be updated. Please check the stock manually.",
                                purchase_id=purchase_id)

        return self._ok(
            "create",
            f'Purchase #{purchase_id}: {p.quantity}x "{product_name}" recorded with a total of {self._price(total_price)}.',
            purchase_id=purchase_id,
            total_price=total_price,
        )

    # --- read ---

    def _read(self, p: PurchaseReadParams, db: Session) -> ActionResult:
        try:
            q = db.query(Purchase).order_by(Purchase.id.desc())
            if p.id:
                q = q.filter(Purchase.id == p.id)
            else:
                q = q.limit(Config.RECENT_PURCHASE_LIMIT)
            purchases = q.all()
        except SQLAlchemyError:
            logger.exception("Failed to read purchases")
            return self._result("read", ResultStatus.failed, "Failed to fetch purchase data.")

        if not purchases:
            return self._result("read", ResultStatus.not_found, "No matching purchases found.")

        lines = []
        for purchase in purchases:
            product = f"#{purchase.product_id} {purchase.product.name}" if purchase.product else "(deleted product)"
            lines.append(
                f"#{purchase.id} {product}, qty={purchase.quantity}, total={self._price(purchase.total_price)}, "
                f"status={purchase.status.value}, buyer={purchase.buyer_name or '-'}"
            )
        return self._ok("read", "Here are the purchases:\n" + "\n".join(lines),
                        purchase_ids=[purchase.id for purchase in purchases])

    # --- update ---

    def _update(self, p: PurchaseUpdateParams, user: AppUser, db: Session) -> ActionResult:
        if not p.id:
            return self._result("update", ResultStatus.invalid, "Which purchase should be updated? Give its id.")

        purchase = self._get(db, p.id)
        if purchase is None:
            return self._result("update", ResultStatus.not_found, f"Purchase #{p.id} was not found.")

        if p.is_edit and p.new_status:
            return self._result("update", ResultStatus.invalid,
                                "Change the status and edit quantity or buyer in separate requests.")
        if p.is_edit:
            return self._edit(purchase, p, db)

        if not p.new_status:
            return self._result("update", ResultStatus.invalid,
                                "The new status was not given. Use CONFIRMED or CANCELLED.")
        status = p.new_status.upper()
        if status not in PurchaseStatus.__members__:
            return self._result("update", ResultStatus.invalid, "Invalid status. Use CONFIRMED or CANCELLED.")
        new_status = PurchaseStatus(status)

        if purchase.status == new_status:
            return self._result("update", ResultStatus.noop, f"Purchase #{purchase.id} is already {status}.")
        if new_status == PurchaseStatus.CONFIRMED:
            # CANCELLED is terminal; re-confirming would need a second stock debit
            return self._result("update", ResultStatus.invalid,
                                f"Purchase #{purchase.id} is CANCELLED and cannot be confirmed again. Record a new purchase instead.")

        return self._cancel(purchase, user, db)

    def _cancel(self, purchase: Purchase, user: AppUser, db: Session) -> ActionResult:
        purchase_id, product_id, quantity = purchase.id, purchase.product_id, purchase.quantity

        try:
            purchase.status = PurchaseStatus.CANCELLED
            purchase.cancelled_at = datetime.datetime.now(datetime.timezone.utc)
            purchase.cancelled_by = user.id
            self._step(db)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to cancel purchase #%s", purchase_id)
            return self._result("update", ResultStatus.failed, "Failed to update the purchase status.")

        restored = False
        if product_id is not None:
            try:
                set_stock(db, product_id, stock_quantity(db, product_id) + quantity)
                self._step(db)
                restored = True
            except SQLAlchemyError:
                db.rollback()
                logger.exception("Failed to restore stock for cancelled purchase #%s", purchase_id)
                if self.atomic_writes:
                    return self._result("update", ResultStatus.failed,
                                        f"Failed to return stock for purchase #{purchase_id}, so its status was not changed.")
                return self._result("update", ResultStatus.partial,
                                    f"Purchase #{purchase_id} was cancelled, but its stock could not be restored. Please check the stock manually.")

        try:
            self._finish(db)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Commit failed while cancelling purchase #%s", purchase_id)
            return self._result("update", ResultStatus.failed, "Failed to update the purchase status.")

        message = f"Purchase #{purchase_id} status changed to CANCELLED."
        if restored:
            message += f" {quantity} unit(s) returned to stock."
        else:
            message += " Its product no longer exists, so no stock was returned."
        return self._ok("update", message, purchase_id=purchase_id, status="CANCELLED")

    def _edit(self, purchase: Purchase, p: PurchaseUpdateParams, db: Session) -> ActionResult:
        """Change quantity and/or buyer; a new quantity re-derives the total at today's price."""
        if p.new_quantity is not None and p.new_quantity <= 0:
            return self._result("update", ResultStatus.invalid, "Purchase quantity must be a positive number.")
        product = purchase.product
        if product is None:
            return self._result("update", ResultStatus.invalid,
                                f"The product of purchase #{purchase.id} no longer exists, so the purchase cannot be edited.")

        purchase_id, product_id = purchase.id, product.id
        new_quantity = p.new_quantity if p.new_quantity is not None else purchase.quantity
        buyer_name = p.new_buyer_name if p.new_buyer_name is not None else purchase.buyer_name
        total_price = product.price * new_quantity if p.new_quantity is not None else purchase.total_price
        delta = new_quantity - purchase.quantity

        adjust_stock = purchase.status == PurchaseStatus.CONFIRMED and delta != 0
        if adjust_stock:
            available = stock_quantity(db, product_id)
            if delta > 0 and available < delta:
                return self._result("update", ResultStatus.invalid,
                                    f"Not enough stock to increase the quantity (stock: {available}, extra requested: {delta}).")

        stock_written = False
        try:
            if adjust_stock:
                set_stock(db, product_id, available - delta)
                self._step(db)
                stock_written = True
            purchase.quantity = new_quantity
            purchase.buyer_name = buyer_name
            purchase.total_price = total_price
            self._step(db)
            self._finish(db)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to edit purchase #%s", purchase_id)
            if stock_written and not self.atomic_writes:
                return self._result("update", ResultStatus.partial,
                                    f"Stock was adjusted, but purchase #{purchase_id} could not be updated. Please check it manually.")
            return self._result("update", ResultStatus.failed, "Failed to update the purchase.")

        return self._ok("update",
                        f"Purchase #{purchase_id} was updated: qty={new_quantity}, total={self._price(total_price)}, buyer={buyer_name or '-'}.",
                        purchase_id=purchase_id, total_price=total_price)

    # --- delete ---

    def _delete(self, p: PurchaseDeleteParams, db: Session) -> ActionResult:
        if not p.id:
            return self._result("delete", ResultStatus.invalid, "Which purchase should be deleted? Give its id.")

        purchase = self._get(db, p.id)
        if purchase is None:
            return self._result("delete", ResultStatus.not_found, f"Purchase #{p.id} was not found.")

        try:
            db.delete(purchase)
            self._step(db)
            self._finish(db)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to delete purchase #%s", p.id)
            return self._result("delete", ResultStatus.failed, "Failed to delete the purchase from the database.")

        return self._ok(
            "delete",
            f"Purchase #{p.id} was deleted. Stock was NOT restored; adjust it manually if needed "
            "(cancel a purchase instead of deleting it to return its quantity to stock).",
            purchase_id=p.id,
        )
