import pytest

from filmchat.search_adapter import (
    SearchAdapter,
    extract_exact_query,
    extract_reference_title,
    to_candidate,
    wants_exact,
    wants_similar,
)

from conftest import FakeTmdb, tmdb_movie


@pytest.mark.parametrize(
    "utterance, expected",
    [
        ("show me something similar to Interstellar", "Interstellar"),
        ("any movies like 'The Matrix'?", "The Matrix"),
        ("I want something like Heat please", "Heat"),
        ("what's popular right now?", None),
    ],
)
def test_extract_reference_title(utterance, expected):
    assert extract_reference_title(utterance) == expected


@pytest.mark.parametrize(
    "utterance, expected",
    [
        ("add Dune to the collection", "Dune"),
        ("show me the movie Arrival", "Arrival"),
        ("can you get me A Quiet Place?", "A Quiet Place"),
        ("show me something good", None),
        ("recommend a comedy", None),
    ],
)
def test_extract_exact_query(utterance, expected):
    assert extract_exact_query(utterance) == expected


def test_cue_detection():
    assert wants_similar("films like Alien")
    assert wants_similar("what's trending")
    assert not wants_similar("recommend a comedy")
    assert wants_exact("display Heat")
    assert not wants_exact("show me something")


def test_to_candidate_requires_id_and_title():
    assert to_candidate({"title": "No Id"}) is None
    candidate = to_candidate({"id": 5, "name": "Dark", "vote_average": 8.7, "first_air_date": "2017-12-01"})
    assert candidate.title == "Dark"
    assert candidate.release_date == "2017-12-01"


def test_similar_filters_and_caps(fake_tmdb):
    outcome = SearchAdapter(fake_tmdb).search_similar("show me something similar to Interstellar")
    assert outcome.mode == "similar"
    assert outcome.anchor_title == "Interstellar"
    assert [c.title for c in outcome.candidates] == [
        "Gravity",
        "The Martian",
        "Arrival",
        "Contact",
        "Ad Astra",
        "Sunshine",
    ]
    assert all(c.rating > 6.0 and c.overview for c in outcome.candidates)
    assert ("similar", 157336) in fake_tmdb.calls


def test_similar_without_reference_uses_popular(fake_tmdb):
    fake_tmdb.popular_results = [tmdb_movie(10, "Hit", 7.9), tmdb_movie(11, "Flop", 4.0)]
    outcome = SearchAdapter(fake_tmdb).search_similar("what's popular right now?")
    assert outcome.mode == "popular"
    assert [c.title for c in outcome.candidates] == ["Hit"]
    assert not any(call[0] == "search" for call in fake_tmdb.calls)


def test_similar_with_unknown_reference_is_empty(fake_tmdb):
    outcome = SearchAdapter(fake_tmdb).search_similar("movies like Nothing Real")
    assert outcome.candidates == []
    assert outcome.reference_title == "Nothing Real"


def test_exact_requires_overview_and_poster(fake_tmdb):
    fake_tmdb.search_results["Dune"] = [
        tmdb_movie(438631, "Dune", 7.8),
        tmdb_movie(841, "Dune", 6.3, poster=None),
        tmdb_movie(2, "Dune Drifter", 4.0),
        tmdb_movie(3, "Dune World", 3.0),
        tmdb_movie(4, "Dune Warriors", 3.5),
    ]
    outcome = SearchAdapter(fake_tmdb).search_exact("add Dune to the collection")
    assert outcome.mode == "exact"
    assert [c.external_id for c in outcome.candidates] == [438631, 2, 3]


def test_upstream_failure_degrades_to_empty(fake_tmdb):
    fake_tmdb.failing.add("search")
    outcome = SearchAdapter(fake_tmdb).search_similar("something similar to Interstellar")
    assert outcome.candidates == []


def test_unconfigured_client_degrades_to_empty():
    adapter = SearchAdapter(FakeTmdb(configured=False))
    assert adapter.configured is False
    assert adapter.find_exact("show me Heat") == []
    assert adapter.find_similar("trending films") == []


def test_pronoun_reference_resolves_to_named_title():
    utterance = "I just watched Dune and loved it, anything like it?"
    assert extract_reference_title(utterance) == "Dune"
    assert extract_reference_title("anything like that one?") is None


def test_pronoun_reference_anchors_on_named_title(fake_tmdb):
    fake_tmdb.search_results["Dune"] = [tmdb_movie(438631, "Dune", 7.8)]
    fake_tmdb.similar_results[438631] = [tmdb_movie(20, "Arrakis Rising", 7.0)]
    outcome = SearchAdapter(fake_tmdb).search_similar("I just watched Dune and loved it, anything like it?")
    assert ("search", "Dune") in fake_tmdb.calls
    assert [c.title for c in outcome.candidates] == ["Arrakis Rising"]


@pytest.mark.parametrize(
    "utterance",
    [
        "show me a horror movie",
        "show me some scary films",
        "show me a good sci-fi movie",
        "get me an animated film",
        "show me comedies",
    ],
)
def test_genre_requests_are_not_exact_queries(utterance):
    assert extract_exact_query(utterance) is None
    assert not wants_exact(utterance)


def test_titles_containing_genre_words_still_search():
    assert extract_exact_query("show me Fight Club") == "Fight Club"
    assert extract_exact_query("show me Space Jam") == "Space Jam"
