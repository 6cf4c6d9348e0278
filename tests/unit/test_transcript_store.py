from __future__ import annotations


def test_list_empty(transcript_store) -> None:
    assert transcript_store.list("nobody") == []


def test_list_newest_first_and_scoped(transcript_store) -> None:
    a1 = transcript_store.create(user_id="user-a", text="first")
    transcript_store.create(user_id="user-b", text="not yours")
    a2 = transcript_store.create(user_id="user-a", text="second")

    rows = transcript_store.list("user-a")
    assert [r.id for r in rows] == [a2.id, a1.id]
    assert all(r.user_id == "user-a" for r in rows)
    assert rows[0].created_at >= rows[1].created_at
    assert rows[0].created_at.tzinfo is not None


def test_delete_all_only_touches_owner(transcript_store) -> None:
    transcript_store.create(user_id="user-a", text="a1")
    transcript_store.create(user_id="user-a", text="a2")
    transcript_store.create(user_id="user-b", text="b1")

    assert transcript_store.delete_all("user-a") == 2
    assert transcript_store.list("user-a") == []
    assert [r.text for r in transcript_store.list("user-b")] == ["b1"]


def test_delete_all_when_empty(transcript_store) -> None:
    assert transcript_store.delete_all("user-a") == 0
