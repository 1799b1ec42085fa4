import pytest

from filmchat.entity_extractor import extract_title


@pytest.mark.parametrize(
    "text, expected",
    [
        ('I just watched "The Prestige" and loved it', "The Prestige"),
        ("Have you seen 'Heat' yet?", "Heat"),
        ("I'd say “Past Lives” is perfect", "Past Lives"),
        ('watched "Dune" then saw "Arrival"', "Dune"),
    ],
)
def test_quoted_substring_wins(text, expected):
    assert extract_title(text) == expected


def test_watched_phrase_stops_at_stop_word():
    assert extract_title("I just watched Dune and loved it") == "Dune"


def test_saw_phrase():
    assert extract_title("I saw Oppenheimer last night") == "Oppenheimer"


def test_watched_until_end_of_string():
    assert extract_title("finally watched Blade Runner 2049") == "Blade Runner 2049"


def test_no_match_returns_none():
    assert extract_title("recommend something fun") is None
    assert extract_title("") is None
