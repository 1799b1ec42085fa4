from filmchat.conversation_logger import ConversationLogger, build_turn
from filmchat.models import IntentTag

from conftest import BrokenStore


def test_turn_is_appended(store):
    ConversationLogger(store).log(build_turn("hi", IntentTag.QUESTION, "hello", created_at=12.0))
    turns = store.list_chat_turns()
    assert len(turns) == 1
    assert turns[0].created_at == 12.0


def test_store_failure_is_swallowed(caplog):
    ConversationLogger(BrokenStore()).log(build_turn("hi", IntentTag.QUESTION, "hello"))
    assert "conversation_log status=failed" in caplog.text
