"""Tests for like toggles and comments."""

import asyncio

import pytest

from news_feed.core.engagement import EngagementStore, comment_id
from news_feed.errors import NotFoundError, ValidationError


def _fixed_clock(value="2026-02-05T10:00:00.000Z"):
    return lambda: value


@pytest.mark.parametrize("toggles", [1, 2, 3, 4, 7])
def test_article_like_toggle_alternates(toggles):
    """Odd toggle counts leave the user liking; even counts return to baseline"""
    store = EngagementStore()
    store.toggle_article_like("a1", "bob")
    baseline = store.like_count("a1")

    result = None
    for _ in range(toggles):
        result = store.toggle_article_like("a1", "alice")

    if toggles % 2:
        assert result.liked is True
        assert result.count == baseline + 1
    else:
        assert result.liked is False
        assert result.count == baseline
    assert store.like_count("a1") == result.count


def test_like_count_matches_set_size_after_mixed_sequence():
    store = EngagementStore()
    for user in ["a", "b", "a", "c", "b", "d", "a"]:
        result = store.toggle_article_like("x", user)
        likes, _ = store.to_persisted()
        assert result.count == len(likes["x"]["users"]) == likes["x"]["count"]

    assert store.like_count("x") == 3
    assert store.has_liked("x", "a")
    assert not store.has_liked("x", "b")


def test_like_count_zero_without_record():
    assert EngagementStore().like_count("unknown") == 0


def test_concurrent_toggles_keep_count_equal_to_set_size():
    """Racing coroutines toggling the same pair still leave a consistent record"""
    store = EngagementStore()

    async def toggle(user):
        await asyncio.sleep(0)
        return store.toggle_article_like("a1", user)

    async def run():
        return await asyncio.gather(*(toggle(u) for u in ["u1", "u2", "u1", "u3", "u1"]))

    asyncio.run(run())

    likes, _ = store.to_persisted()
    assert likes["a1"]["users"] == ["u1", "u2", "u3"]
    assert store.like_count("a1") == 3


def test_comment_at_max_length_accepted():
    store = EngagementStore()

    comment = store.add_comment("a1", "alice", "x" * 300)

    assert len(comment.text) == 300


def test_comment_over_max_length_rejected():
    store = EngagementStore()

    with pytest.raises(ValidationError):
        store.add_comment("a1", "alice", "x" * 301)


def test_comment_length_counted_after_trimming():
    store = EngagementStore()

    comment = store.add_comment("a1", "alice", "  " + "y" * 300 + "  ")

    assert comment.text == "y" * 300


@pytest.mark.parametrize("text", ["", "   ", None])
def test_empty_comment_rejected(text):
    with pytest.raises(ValidationError):
        EngagementStore().add_comment("a1", "alice", text)


def test_comment_id_is_deterministic():
    """Same article, author, timestamp and text should yield the same id"""
    first = EngagementStore(clock=_fixed_clock()).add_comment("a1", "alice", "hello")
    second = EngagementStore(clock=_fixed_clock()).add_comment("a1", "alice", " hello ")

    assert first.id == second.id == comment_id("a1", "alice", "2026-02-05T10:00:00.000Z", "hello")


def test_comments_listed_newest_first_with_viewer_flag():
    stamps = iter(["2026-02-05T10:00:00.000Z", "2026-02-05T10:01:00.000Z"])
    store = EngagementStore(clock=lambda: next(stamps))
    older = store.add_comment("a1", "alice", "first")
    newer = store.add_comment("a1", "bob", "second")
    store.toggle_comment_like("a1", older.id, "carol")

    views, upgraded = store.list_comments("a1", "carol")

    assert upgraded is False
    assert [v["id"] for v in views] == [newer.id, older.id]
    assert views[1]["liked"] is True
    assert views[1]["likes"] == 1
    assert views[0]["liked"] is False


def test_comment_views_not_liked_without_viewer():
    store = EngagementStore()
    comment = store.add_comment("a1", "alice", "hi")
    store.toggle_comment_like("a1", comment.id, "alice")

    views, _ = store.list_comments("a1")

    assert views[0]["liked"] is False
    assert views[0]["likes"] == 1


def test_comment_like_toggle_alternates():
    store = EngagementStore()
    comment = store.add_comment("a1", "alice", "hi")

    first = store.toggle_comment_like("a1", comment.id, "bob")
    second = store.toggle_comment_like("a1", comment.id, "bob")

    assert (first.count, first.liked) == (1, True)
    assert (second.count, second.liked) == (0, False)


def test_comment_like_unknown_comment_raises():
    store = EngagementStore()
    comment = store.add_comment("a1", "alice", "hi")

    with pytest.raises(NotFoundError):
        store.toggle_comment_like("a1", "nope", "bob")
    with pytest.raises(NotFoundError):
        store.toggle_comment_like("other-article", comment.id, "bob")


def test_legacy_comment_upgraded_on_first_read():
    """Comments stored without id or likedBy get both on first listing"""
    store = EngagementStore.from_persisted(
        {},
        {
            "a1": [
                {"username": "alice", "text": "old", "createdAt": "2025-01-01T00:00:00.000Z", "likes": 3},
            ]
        },
    )

    views, upgraded = store.list_comments("a1", "bob")
    again, upgraded_again = store.list_comments("a1", "bob")

    expected_id = comment_id("a1", "alice", "2025-01-01T00:00:00.000Z", "old")
    assert upgraded is True
    assert upgraded_again is False
    assert views[0]["id"] == again[0]["id"] == expected_id
    assert views[0]["likes"] == 3

    _, comments = store.to_persisted()
    assert comments["a1"][0]["likedBy"] == []
    assert comments["a1"][0]["legacyLikes"] == 3


def test_legacy_count_is_baseline_for_new_likes():
    store = EngagementStore.from_persisted(
        {},
        {"a1": [{"username": "alice", "text": "old", "createdAt": "t", "likes": 2}]},
    )
    views, _ = store.list_comments("a1")

    liked = store.toggle_comment_like("a1", views[0]["id"], "bob")
    unliked = store.toggle_comment_like("a1", views[0]["id"], "bob")

    assert (liked.count, liked.liked) == (3, True)
    assert (unliked.count, unliked.liked) == (2, False)


def test_from_persisted_reconciles_drifted_like_counts():
    """Stored counts that disagree with the user array are recomputed"""
    store = EngagementStore.from_persisted(
        {"a1": {"count": 5, "users": ["alice", "bob"]}, "a2": {"count": -1, "users": []}},
        {},
    )

    assert store.like_count("a1") == 2
    assert store.like_count("a2") == 0
    result = store.toggle_article_like("a1", "alice")
    assert (result.count, result.liked) == (1, False)


def test_persisted_form_round_trip():
    store = EngagementStore(clock=_fixed_clock())
    store.toggle_article_like("a1", "bob")
    store.toggle_article_like("a1", "alice")
    comment = store.add_comment("a1", "alice", "hi")
    store.toggle_comment_like("a1", comment.id, "bob")

    likes, comments = store.to_persisted()
    restored = EngagementStore.from_persisted(likes, comments)

    assert likes["a1"] == {"count": 2, "users": ["alice", "bob"]}
    assert restored.like_count("a1") == 2
    views, upgraded = restored.list_comments("a1", "bob")
    assert upgraded is False
    assert views[0]["id"] == comment.id
    assert views[0]["liked"] is True
