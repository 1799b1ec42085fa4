from filmchat.context_assembler import CatalogContext, CatalogSnapshot, build_context

from conftest import BrokenStore


def test_context_is_recency_ordered_and_bounded(seeded_store):
    context = build_context(seeded_store, limit=2)
    assert context.available is True
    assert [entry.title for entry in context.entries] == ["Quiet Drama", "Paddington 2"]


def test_long_text_is_truncated(store):
    store.add_entry("Epic", overview="word " * 200, personal_note="note " * 100)
    entry = build_context(store).entries[0]
    assert len(entry.overview) <= 303
    assert entry.overview.endswith("...")
    assert len(entry.personal_note) <= 203


def test_store_failure_marks_unavailable():
    context = build_context(BrokenStore())
    assert context.available is False
    assert context.is_empty


def test_top_picks_keeps_recency_for_ties():
    context = CatalogContext(
        entries=[
            CatalogSnapshot("Newest", "", 7.0, [], None, 4),
            CatalogSnapshot("Loved", "", 8.0, [], None, 5),
            CatalogSnapshot("Older", "", 7.0, [], None, 4),
            CatalogSnapshot("Meh", "", 5.0, [], None, 2),
        ]
    )
    picks = context.top_picks(limit=3, min_enthusiasm=4)
    assert [entry.title for entry in picks] == ["Loved", "Newest", "Older"]
