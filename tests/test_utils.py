from filmchat.utils import normalize_text, quote_titles, truncate_text


def test_normalize_strips_accents_and_punctuation():
    assert normalize_text("  Amélie!!  is   GREAT ") == "amelie is great"


def test_normalize_keeps_hyphen_and_apostrophe():
    assert normalize_text("I'd like Sci-Fi") == "i'd like sci-fi"
    assert normalize_text("") == ""


def test_truncate_cuts_on_word_boundary():
    assert truncate_text("short", 10) == "short"
    assert truncate_text("one two three four", 9) == "one two..."
    assert truncate_text(None, 5) == ""


def test_quote_titles():
    assert quote_titles(["Heat", "Ronin"]) == '"Heat", "Ronin"'
    assert quote_titles(["Heat", "Ronin"], " or ") == '"Heat" or "Ronin"'
