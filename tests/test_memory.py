from __future__ import annotations

import pytest

from guardwire.memory import ChatMessage, ChatSession, Role, render_transcript


def test_window_evicts_oldest_non_system_messages():
    session = ChatSession(max_messages=3)
    session.set_system_message("sys")
    session.add_user("a")
    session.add_assistant("b")
    session.add_user("c")
    assert [m.content for m in session.messages] == ["sys", "b", "c"]
    assert session.messages[0].role is Role.SYSTEM


def test_window_without_system_message():
    session = ChatSession(max_messages=2)
    for text in ("a", "b", "c"):
        session.add_user(text)
    assert [m.content for m in session.messages] == ["b", "c"]


def test_system_message_is_replaced_in_place():
    session = ChatSession()
    session.set_system_message("first")
    session.add_user("hi")
    session.add(ChatMessage(Role.SYSTEM, "second"))
    assert [m.content for m in session.messages] == ["second", "hi"]
    assert session.system_message == ChatMessage(Role.SYSTEM, "second")


def test_messages_returns_a_copy():
    session = ChatSession()
    session.add_user("hi")
    session.messages.clear()
    assert len(session) == 1


def test_clear():
    session = ChatSession()
    session.set_system_message("sys")
    session.add_user("hi")
    session.clear()
    assert session.messages == []
    assert session.system_message is None


def test_sessions_are_independent():
    a, b = ChatSession(), ChatSession()
    a.add_user("only a")
    assert len(b) == 0
    assert a.session_id != b.session_id


def test_invalid_window():
    with pytest.raises(ValueError):
        ChatSession(max_messages=0)


def test_render_transcript():
    messages = [ChatMessage(Role.SYSTEM, "Be brief."), ChatMessage(Role.USER, "hi")]
    assert render_transcript(messages) == "System: Be brief.\n\nUser: hi\n\nAssistant:"
