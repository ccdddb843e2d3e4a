"""Controller / Orchestrator: one chat turn = plan, then (optionally) dispatch.

No state is kept between turns; the caller sends the whole transcript.
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from .dispatcher import Dispatcher
from .generate import PlannerClient
from ..schemas.io_models import AppUser, ChatMessage
from ..utils.logger import get_logger

logger = get_logger()

EMPTY_REPLY = "Command received, but there was nothing to do."


class Controller:
    def __init__(self, planner: Optional[PlannerClient] = None, dispatcher: Optional[Dispatcher] = None):
        self.planner = planner or PlannerClient()
        self.dispatcher = dispatcher or Dispatcher()

    def handle_turn(self, messages: List[ChatMessage], user: Optional[AppUser], db: Session) -> str:
        who = f"user #{user.id} ({user.role.value})" if user else "guest"
        logger.info("[WORKFLOW] 1. Planning turn for %s with %d message(s)", who, len(messages))
        plan = self.planner.plan(messages, user)
        reply = (plan.reply or "").strip()

        if plan.action:
            logger.info("[WORKFLOW] 2. Dispatching action: %s", plan.action)
            result = self.dispatcher.dispatch(plan.action, user, db)
            logger.info("[WORKFLOW] 3. Action %s.%s -> %s", result.agent, result.operation, result.status.value)
            if result.message:
                reply = f"{reply}\n\n{result.message}" if reply else result.message

        return reply or EMPTY_REPLY
