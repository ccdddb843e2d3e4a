"""BaseAgent interface for the CRUD agents."""
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy.orm import Session

from ..app.config import Config
from ..schemas.io_models import ActionResult, AppUser, ResultStatus
from ..data.product_store import format_price


class BaseAgent(ABC):
    name: str = "base"

    def __init__(self, atomic_writes: Optional[bool] = None):
        self.atomic_writes = Config.ATOMIC_WRITES if atomic_writes is None else atomic_writes

    @abstractmethod
    def handle(self, operation: str, params, user: AppUser, db: Session) -> ActionResult:
        """Run one validated operation and narrate the outcome."""
        ...

    def _step(self, db: Session):
        """Finish one write step: flush inside the operation's transaction, or
        commit right away when writes are not atomic."""
        if self.atomic_writes:
            db.flush()
        else:
            db.commit()

    def _finish(self, db: Session):
        db.commit()

    def _price(self, amount) -> str:
        return format_price(amount, Config.CURRENCY_LABEL)

    def _ok(self, operation: str, message: str, **data) -> ActionResult:
        return ActionResult(agent=self.name, operation=operation, message=message, data=data)

    def _result(self, operation: str, status: ResultStatus, message: str, **data) -> ActionResult:
        return ActionResult(agent=self.name, operation=operation, status=status, message=message, data=data)
