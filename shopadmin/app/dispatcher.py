"""Dispatcher: validates an action descriptor and runs it through the agents.

Order per call: login check -> descriptor shape -> role permission ->
parameter validation -> agent (resolution, mutation/query, narration).
Every outcome is an ActionResult carrying a user-facing message.
"""
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .permissions import NOT_LOGGED_IN, check_permission
from ..agents.product_agent import ProductAgent
from ..agents.purchase_agent import PurchaseAgent
from ..schemas.action_models import ActionDescriptor, describe_validation_error
from ..schemas.io_models import ActionResult, AppUser, ResultStatus
from ..utils.logger import get_logger

logger = get_logger("dispatcher")


class Dispatcher:
    def __init__(self, atomic_writes: Optional[bool] = None):
        self.agents = {
            "product": ProductAgent(atomic_writes=atomic_writes),
            "purchase": PurchaseAgent(atomic_writes=atomic_writes),
        }

    def dispatch(self, action: Union[ActionDescriptor, Dict[str, Any]], user: Optional[AppUser], db: Session) -> ActionResult:
        raw = action.model_dump(mode="json") if isinstance(action, ActionDescriptor) else (action or {})
        entity_name = str(raw.get("entity", "?"))
        operation_name = str(raw.get("operation", "?"))

        if user is None:
            return ActionResult(agent=entity_name, operation=operation_name,
                                status=ResultStatus.denied, message=NOT_LOGGED_IN)

        try:
            descriptor = action if isinstance(action, ActionDescriptor) else ActionDescriptor.model_validate(raw)
        except ValidationError as e:
            logger.warning("Rejected action descriptor %s: %s", raw, e)
            return ActionResult(agent=entity_name, operation=operation_name, status=ResultStatus.invalid,
                                message="The requested CRUD entity or operation is not recognised.")

        entity, operation = descriptor.entity, descriptor.operation
        denial = check_permission(user, entity, operation, descriptor.params)
        if denial:
            logger.info("Denied %s.%s for user #%s (%s)", entity.value, operation.value, user.id, user.role.value)
            return ActionResult(agent=entity.value, operation=operation.value,
                                status=ResultStatus.denied, message=denial)

        try:
            params = descriptor.typed_params()
        except ValidationError as e:
            return ActionResult(agent=entity.value, operation=operation.value, status=ResultStatus.invalid,
                                message=f"Invalid {entity.value} {operation.value} parameters: {describe_validation_error(e)}")

        agent = self.agents[entity.value]
        try:
            return agent.handle(operation.value, params, user, db)
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Database error during %s.%s", entity.value, operation.value)
            return ActionResult(agent=entity.value, operation=operation.value, status=ResultStatus.failed,
                                message=f"A database error occurred while running the {entity.value} {operation.value}.")
