from __future__ import annotations

import logging
import time
from typing import Optional

from .catalog_store import CatalogStore
from .models import ChatTurn, IntentTag

logger = logging.getLogger("filmchat.conversation")


class ConversationLogger:
    """Best-effort append-only audit of chat exchanges."""

    def __init__(self, store: CatalogStore) -> None:
        self._store = store

    def log(self, turn: ChatTurn) -> None:
        """Purpose: Persist one ChatTurn without affecting the reply.
        Inputs/Outputs: Input is a ChatTurn; no return value.
        Side Effects / State: Appends to the store's turn log.
        Dependencies: Uses CatalogStore.append_chat_turn.
        Failure Modes: Every exception is logged and discarded.
        If Removed: Conversations are no longer audited.
        Testing Notes: A store that raises must not raise out of log().
        """
        try:
            self._store.append_chat_turn(turn)
        except Exception as exc:
            logger.warning("conversation_log status=failed intent=%s error=%s", turn.intent.value, exc)
            return
        logger.debug("conversation_log status=stored intent=%s", turn.intent.value)


def build_turn(message: str, intent: IntentTag, response: str, created_at: Optional[float] = None) -> ChatTurn:
    return ChatTurn(
        input=message,
        intent=intent,
        response=response,
        created_at=created_at if created_at is not None else time.time(),
    )
