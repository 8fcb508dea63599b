"""Tests for ArticleCatalog upsert-merge semantics."""

from news_feed.core.catalog import (
    MERGE_RULES,
    ArticleCatalog,
    fields_from_raw,
    prefer_existing,
    prefer_incoming,
    union,
)
from news_feed.core.types import RawArticle


def _fields(**overrides):
    fields = {
        "title": "Title",
        "summary": "Summary",
        "cover": "https://img.example.com/a.png",
        "published_at": "2026-02-05T10:00:00Z",
        "url": "https://example.com/a",
        "source": "Example",
    }
    fields.update(overrides)
    return fields


def test_new_article_joins_aggregate_category():
    """First sighting should record the sighted category plus news"""
    catalog = ArticleCatalog()

    article = catalog.upsert("a1", _fields(), "tech")

    assert article.categories == {"tech", "news"}
    assert article.primary_category == "tech"
    assert catalog.get("a1") is article


def test_identical_upsert_leaves_record_unchanged():
    """Upserting the same fields twice should not change the record"""
    catalog = ArticleCatalog()
    first = catalog.upsert("a1", _fields(), "tech").to_dict()

    second = catalog.upsert("a1", _fields(), "tech").to_dict()

    assert first == second


def test_populated_field_fills_empty_field():
    """A later sighting should fill fields that were empty"""
    catalog = ArticleCatalog()
    catalog.upsert("a1", _fields(summary=None, cover=""), "tech")

    article = catalog.upsert("a1", _fields(summary="Filled", cover="https://img/b.png"), "tech")

    assert article.summary == "Filled"
    assert article.cover == "https://img/b.png"


def test_empty_field_never_erases_populated_field():
    """A later sighting with empty fields should not erase stored values"""
    catalog = ArticleCatalog()
    catalog.upsert("a1", _fields(), "tech")

    article = catalog.upsert(
        "a1",
        {"title": None, "summary": "", "cover": None, "published_at": None, "url": None, "source": ""},
        "sports",
    )

    assert article.title == "Title"
    assert article.summary == "Summary"
    assert article.cover == "https://img.example.com/a.png"
    assert article.published_at == "2026-02-05T10:00:00Z"
    assert article.url == "https://example.com/a"
    assert article.source == "Example"


def test_existing_populated_field_wins_over_new_value():
    """Content fields keep the stored value once populated"""
    catalog = ArticleCatalog()
    catalog.upsert("a1", _fields(title="Original"), "tech")

    article = catalog.upsert("a1", _fields(title="Rewritten"), "tech")

    assert article.title == "Original"


def test_categories_accumulate_and_primary_is_last_sighting():
    """Membership is a union; primary category follows the latest sighting"""
    catalog = ArticleCatalog()
    catalog.upsert("a1", _fields(), "tech")
    catalog.upsert("a1", _fields(), "business")

    article = catalog.upsert("a1", _fields(), "world")

    assert article.categories == {"tech", "business", "world", "news"}
    assert article.primary_category == "world"


def test_get_unknown_returns_none():
    assert ArticleCatalog().get("missing") is None


def test_merge_rule_table_policies():
    """Each merge policy behaves independently of the catalog"""
    assert prefer_existing("kept", "new") == "kept"
    assert prefer_existing("", "new") == "new"
    assert prefer_existing(None, None) is None
    assert prefer_incoming("old", "new") == "new"
    assert prefer_incoming("old", None) == "old"
    assert union({"a"}, {"b"}) == {"a", "b"}
    assert MERGE_RULES["categories"] is union
    assert MERGE_RULES["primary_category"] is prefer_incoming
    for name in ("title", "summary", "cover", "published_at", "url", "source"):
        assert MERGE_RULES[name] is prefer_existing


def test_fields_from_raw_maps_upstream_names():
    raw = RawArticle(
        title="T",
        description="D",
        image_url="I",
        url="U",
        published_at="P",
        source_name=None,
    )

    assert fields_from_raw(raw) == {
        "title": "T",
        "summary": "D",
        "cover": "I",
        "published_at": "P",
        "url": "U",
        "source": "",
    }


def test_persisted_round_trip_keeps_membership():
    """Catalog codec should preserve categories as a set"""
    catalog = ArticleCatalog()
    catalog.upsert("a1", _fields(), "tech")
    catalog.upsert("a1", _fields(), "sports")

    restored = ArticleCatalog.from_persisted(catalog.to_persisted())

    article = restored.get("a1")
    assert article is not None
    assert article.categories == {"tech", "sports", "news"}
    assert article.primary_category == "sports"
    assert catalog.to_persisted()["a1"]["categories"] == ["news", "sports", "tech"]


def test_from_persisted_accepts_single_category_records():
    """Records written by the trending panel carry only a category field"""
    restored = ArticleCatalog.from_persisted(
        {"t1": {"id": "t1", "title": "Trend", "category": "tech", "url": "https://x"}}
    )

    article = restored.get("t1")
    assert article.categories == {"tech"}
    assert article.primary_category == "tech"
