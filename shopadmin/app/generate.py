#!/usr/bin/env python3
"""
Planning module for the shop admin assistant.

This module asks an OpenAI-compatible chat-completions API to turn the
conversation into a reply plus at most one CRUD action. Upstream failures are
never raised to the caller: they come back as a reply with no action.
"""

import json
import re
from typing import Any, Dict, List, Optional

import requests

from .config import Config
from .prompt_builder import PromptBuilder
from ..nlu.rules import CONFIRM_DELETE_ALL_PHRASE, is_delete_all_confirmation
from ..schemas.io_models import AppUser, ChatMessage, Plan
from ..utils.logger import get_logger
from ..utils.security import mask_secret

logger = get_logger("planner")

NOT_CONFIGURED_REPLY = (
    "The AI service is not configured (OPENAI_API_KEY is empty). "
    "You can still manage products and purchases manually from the admin pages."
)
QUOTA_REPLY = (
    "The AI service has run out of quota or is not active right now. "
    "You can still manage products and purchases from the admin menu as usual.\n\n"
    "If you are the developer, check the plan & billing of the AI provider or replace OPENAI_API_KEY."
)
RATE_LIMIT_REPLY = (
    "The AI service is receiving too many requests right now. Please try again in a moment; "
    "the admin pages keep working in the meantime."
)
GUEST_REPLY = "CRUD actions are not available without logging in. Please log in as admin or staff first."
CONFIRMED_DELETE_ALL_REPLY = "Confirmation received. Deleting all products and their stock."


class PlannerClient:
    """Client for planning CRUD actions using a hosted chat-completions API."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, base_url: Optional[str] = None):
        """Initialize the planner client."""
        self.api_key = api_key if api_key is not None else Config.OPENAI_API_KEY
        self.model = model or Config.OPENAI_MODEL
        self.api_url = f"{(base_url or Config.OPENAI_BASE_URL).rstrip('/')}/chat/completions"
        self.prompt_builder = PromptBuilder()

    def plan(self, messages: List[ChatMessage], user: Optional[AppUser]) -> Plan:
        """
        Produce a reply and an optional action for the latest turn.

        Args:
            messages: Conversation transcript (oldest first)
            user: Authenticated caller, or None for a guest

        Returns:
            Plan with a reply and a sanitized action (or None)
        """
        if not self.api_key:
            return Plan(reply=NOT_CONFIGURED_REPLY, action=None)

        confirmed = self._confirms_delete_all(messages)
        if confirmed:
            # the only way the confirmation flag gets set
            plan = Plan(
                reply=CONFIRMED_DELETE_ALL_REPLY,
                action={"entity": "product", "operation": "delete",
                        "params": {"scope": "all", "confirmDeleteAll": True}},
            )
        else:
            plan = self._call_api(messages, user)

        return self._sanitize(plan, confirmed, user)

    @staticmethod
    def _confirms_delete_all(messages: List[ChatMessage]) -> bool:
        """True only when the latest message is the confirmation phrase and the
        assistant turn right before it asked for that phrase."""
        if len(messages) < 2:
            return False
        previous, latest = messages[-2], messages[-1]
        return (
            latest.role == "user"
            and is_delete_all_confirmation(latest.content)
            and previous.role == "assistant"
            and CONFIRM_DELETE_ALL_PHRASE in previous.content
        )

    def _sanitize(self, plan: Plan, confirmed: bool, user: Optional[AppUser]) -> Plan:
        action = plan.action
        if action is None:
            return plan

        if not isinstance(action, dict) or not action.get("entity") or not action.get("operation"):
            logger.warning("Discarding malformed action from planner: %r", action)
            return Plan(reply=plan.reply, action=None)

        if user is None:
            logger.info("Dropping %s.%s planned for a guest", action.get("entity"), action.get("operation"))
            reply = f"{plan.reply.strip()}\n\n{GUEST_REPLY}" if plan.reply.strip() else GUEST_REPLY
            return Plan(reply=reply, action=None)

        params = action.get("params")
        if isinstance(params, dict) and not confirmed:
            stripped = {k: v for k, v in params.items() if k not in ("confirmDeleteAll", "confirm_delete_all")}
            if len(stripped) != len(params):
                logger.warning("Stripped delete-all confirmation flag: no confirmation phrase answering a delete-all prompt")
                action = {**action, "params": stripped}

        return Plan(reply=plan.reply, action=action)

    def _call_api(self, messages: List[ChatMessage], user: Optional[AppUser]) -> Plan:
        payload = {
            "model": self.model,
            "messages": self.prompt_builder.build_messages(messages, user),
            "temperature": Config.LLM_TEMPERATURE,
            "response_format": {"type": "json_object"},
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            logger.info("Calling planner model=%s key=%s turns=%d", self.model, mask_secret(self.api_key), len(messages))
            response = requests.post(self.api_url, headers=headers, json=payload, timeout=Config.LLM_TIMEOUT_SECONDS)
        except requests.exceptions.RequestException as e:
            logger.error("Planner request failed: %s", e)
            return Plan(reply=f"Sorry, there was a problem contacting the AI service. Detail: {e}", action=None)

        if not response.ok:
            return self._error_plan(response)

        try:
            data = response.json()
            content = (data["choices"][0]["message"]["content"] or "").strip()
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error("Unexpected planner response structure: %s", e)
            return Plan(reply="Sorry, the AI service returned a response in an unexpected format.", action=None)

        return self._parse_plan(content)

    def _error_plan(self, response: requests.Response) -> Plan:
        status = response.status_code
        message = "Failed to call the AI API."
        code = None
        try:
            err = response.json().get("error") or {}
            message = err.get("message") or message
            code = err.get("code")
        except (ValueError, AttributeError):
            if response.text:
                message = response.text

        logger.error("Error from AI API: %s %s", status, message)

        if status == 429:
            if code == "insufficient_quota":
                return Plan(reply=QUOTA_REPLY, action=None)
            return Plan(reply=RATE_LIMIT_REPLY, action=None)

        return Plan(
            reply=f"Sorry, there was a problem contacting the AI service (status {status}). Detail: {message}",
            action=None,
        )

    def _parse_plan(self, content: str) -> Plan:
        """Parse the model output; anything that is not a JSON object becomes the reply."""
        parsed = self._load_json_object(content)
        if parsed is None:
            logger.warning("Planner output is not a JSON object; using it as the reply")
            return Plan(reply=content, action=None)

        reply = parsed.get("reply")
        action = parsed.get("action")
        if action and not isinstance(action, dict):
            logger.warning("Discarding non-object action from planner: %r", action)
            action = None
        return Plan(
            reply=reply if isinstance(reply, str) else ("" if reply is None else str(reply)),
            action=action or None,
        )

    @staticmethod
    def _load_json_object(content: str) -> Optional[Dict[str, Any]]:
        try:
            parsed = json.loads(content)
        except ValueError:
            # tolerate prose or code fences around the object
            match = re.search(r"\{.*\}", content, re.DOTALL)
            if not match:
                return None
            try:
                parsed = json.loads(match.group())
            except ValueError:
                return None
        return parsed if isinstance(parsed, dict) else None
