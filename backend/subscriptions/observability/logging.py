"""Structured logging helper for the webhook relay."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger("subscriptions")


def log_relay_event(*, message: str, event_id: Optional[str] = None, event_type: Optional[str] = None,
                    user_id: Optional[str] = None, extra: Optional[Dict[str, Any]] = None) -> None:
    payload: Dict[str, Any] = {"message": message}
    if event_id:
        payload["event_id"] = event_id
    if event_type:
        payload["event_type"] = event_type
    if user_id:
        payload["user_id"] = user_id
    if extra:
        payload.update(extra)
    logger.info(payload)
