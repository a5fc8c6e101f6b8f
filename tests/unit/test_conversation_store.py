"""Unit tests for the JSON-file conversation store."""

import asyncio
import json

import pytest

from moxie_server.conversations import (
    ConversationStore,
    InMemoryConversationStore,
    Message,
    Role,
    is_valid_conversation_id,
)


@pytest.fixture
def store(tmp_path) -> ConversationStore:
    return ConversationStore(tmp_path / "conversations")


def test_store_creates_directory(tmp_path):
    """Test that the conversations directory is created."""
    ConversationStore(tmp_path / "a" / "b")

    assert (tmp_path / "a" / "b").is_dir()


@pytest.mark.parametrize(
    "conversation_id, valid",
    [
        ("abc", True),
        ("3f2b8c1e-5d4a-4e8b-9c1f-2a3b4c5d6e7f", True),
        ("notes_2024.v2", True),
        ("", False),
        (".hidden", False),
        ("../escape", False),
        ("a/b", False),
        ("with space", False),
        ("trailing\n", False),
        ("x" * 129, False),
    ],
)
def test_conversation_id_validation(conversation_id, valid):
    """Test which conversation ids are accepted as file names."""
    assert is_valid_conversation_id(conversation_id) is valid


@pytest.mark.asyncio
async def test_unknown_conversation_is_empty(store):
    """Test that an unknown conversation has no messages."""
    assert await store.get_conversation("nothing-here") == []


@pytest.mark.asyncio
async def test_save_and_load(store):
    """Test appending messages and reading them back in order."""
    first = await store.save_message("c1", Message.user("Hello"))
    second = await store.save_message("c1", Message.assistant("Hi!"))

    assert (first, second) == (1, 2)
    assert await store.get_conversation("c1") == [
        Message.user("Hello"),
        Message.assistant("Hi!"),
    ]


@pytest.mark.asyncio
async def test_file_format(store):
    """Test the JSON layout written to disk."""
    await store.save_message("c1", Message.user("Hello"))

    data = json.loads((store.conversations_dir / "c1.json").read_text(encoding="utf-8"))

    assert data["metadata"]["conversation_id"] == "c1"
    assert data["metadata"]["message_count"] == 1
    assert data["metadata"]["next_id"] == 2
    assert data["metadata"]["created_at"].endswith("Z")
    assert data["messages"][0]["role"] == "user"
    assert data["messages"][0]["content"] == "Hello"


@pytest.mark.asyncio
async def test_persists_across_instances(tmp_path):
    """Test that a new store sees conversations written by another."""
    await ConversationStore(tmp_path).save_message("c1", Message.user("Persist me"))

    assert await ConversationStore(tmp_path).get_conversation("c1") == [
        Message.user("Persist me")
    ]


@pytest.mark.asyncio
async def test_concurrent_saves_keep_every_message(store):
    """Test that concurrent writes to one conversation are serialized."""
    ids = await asyncio.gather(
        *(store.save_message("busy", Message.user(f"m{i}")) for i in range(20))
    )

    assert sorted(ids) == list(range(1, 21))
    assert len(await store.get_conversation("busy")) == 20
    assert store._locks == {}


@pytest.mark.asyncio
async def test_save_waiting_on_delete_recreates_conversation(store):
    """Test that a save queued behind a delete runs after it, not beside it."""
    await store.save_message("c1", Message.user("old"))

    await asyncio.gather(
        store.delete_conversation("c1"),
        store.save_message("c1", Message.user("new")),
        store.save_message("c1", Message.user("newer")),
    )

    messages = await store.get_messages("c1")
    assert [(m.id, m.content) for m in messages] == [(1, "new"), (2, "newer")]
    assert store._locks == {}


@pytest.mark.asyncio
async def test_invalid_id_rejected(store):
    """Test that unsafe ids are refused."""
    with pytest.raises(ValueError, match="Invalid conversation id"):
        await store.save_message("../escape", Message.user("x"))


@pytest.mark.asyncio
async def test_get_messages(store):
    """Test reading stored records with ids and timestamps."""
    await store.save_message("c1", Message.user("Hello"))

    records = await store.get_messages("c1")

    assert records[0].id == 1
    assert records[0].conversation_id == "c1"
    assert records[0].role is Role.USER
    assert records[0].to_dict()["role"] == "user"

    with pytest.raises(FileNotFoundError):
        await store.get_messages("missing")


@pytest.mark.asyncio
async def test_get_recent_messages(store):
    """Test fetching the last messages of a conversation."""
    for i in range(5):
        await store.save_message("c1", Message.user(f"m{i}"))

    recent = await store.get_recent_messages("c1", 2)

    assert [m.content for m in recent] == ["m3", "m4"]
    assert await store.get_recent_messages("c1", 0) == []


@pytest.mark.asyncio
async def test_search_messages(store):
    """Test case-insensitive search ordered newest first."""
    await store.save_message("a", Message.user("Quarterly REPORT"))
    await store.save_message("b", Message.assistant("Here is the report"))
    await store.save_message("b", Message.user("Unrelated"))

    results = await store.search_messages("report")

    assert [r.content for r in results] == ["Here is the report", "Quarterly REPORT"]
    assert len(await store.search_messages("report", limit=1)) == 1
    assert await store.search_messages("nothing") == []


@pytest.mark.asyncio
async def test_list_conversations(store):
    """Test listing summaries, most recently updated first."""
    await store.save_message("old", Message.user("First conversation"))
    await store.save_message("new", Message.system("setup"))
    await store.save_message("new", Message.user("x" * 150))

    summaries = await store.list_conversations()

    assert [s.conversation_id for s in summaries] == ["new", "old"]
    assert summaries[0].message_count == 2
    assert summaries[0].preview == "x" * 97 + "..."
    assert summaries[1].preview == "First conversation"


@pytest.mark.asyncio
async def test_list_skips_unreadable_files(store):
    """Test that corrupt files do not break the listing."""
    await store.save_message("good", Message.user("ok"))
    (store.conversations_dir / "broken.json").write_text("{not json", encoding="utf-8")
    (store.conversations_dir / ".hidden.json").write_text("{}", encoding="utf-8")

    summaries = await store.list_conversations()

    assert [s.conversation_id for s in summaries] == ["good"]


@pytest.mark.asyncio
async def test_search_skips_unreadable_files(store):
    """Test that corrupt files do not break searching."""
    await store.save_message("good", Message.user("find me"))
    (store.conversations_dir / "broken.json").write_text("{not json", encoding="utf-8")

    results = await store.search_messages("find")

    assert [(r.conversation_id, r.content) for r in results] == [("good", "find me")]


@pytest.mark.asyncio
async def test_delete_conversation(store):
    """Test deleting a conversation."""
    await store.save_message("c1", Message.user("bye"))

    await store.delete_conversation("c1")

    assert await store.get_conversation("c1") == []
    with pytest.raises(FileNotFoundError):
        await store.delete_conversation("c1")


@pytest.mark.asyncio
async def test_in_memory_store():
    """Test the in-memory conversation memory."""
    memory = InMemoryConversationStore()

    assert await memory.save_message("c1", Message.user("a")) == 1
    assert await memory.save_message("c2", Message.user("b")) == 2
    assert await memory.get_conversation("c1") == [Message.user("a")]
    assert await memory.get_conversation("missing") == []


def test_role_parse():
    """Test that unknown stored roles are read as user messages."""
    assert Role.parse("assistant") is Role.ASSISTANT
    assert Role.parse("tool") is Role.USER
