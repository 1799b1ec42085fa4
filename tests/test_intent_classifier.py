import re

from filmchat.intent_classifier import IntentRule, classify, classify_with_match
from filmchat.models import IntentTag


def test_submission_cue_wins():
    assert classify("I just watched Dune and loved it") == IntentTag.SUBMIT_RECOMMENDATION


def test_request_cue():
    assert classify("recommend a sci-fi movie for tonight") == IntentTag.REQUEST_RECOMMENDATION


def test_discussion_cue():
    assert classify("what do you think about Dune?") == IntentTag.DISCUSSION


def test_submission_beats_request_when_both_match():
    text = "I loved Arrival, can you recommend something else?"
    assert classify(text) == IntentTag.SUBMIT_RECOMMENDATION


def test_default_is_question():
    assert classify("where are the popcorn machines") == IntentTag.QUESTION
    assert classify("") == IntentTag.QUESTION


def test_match_reports_cue():
    match = classify_with_match("Any thoughts on the new Bond?")
    assert match.label == IntentTag.DISCUSSION
    assert match.cue == "thoughts"
    assert classify_with_match("hello").rule is None


def test_custom_rule_list_controls_priority():
    rules = [
        IntentRule(re.compile("recommend"), IntentTag.REQUEST_RECOMMENDATION),
        IntentRule(re.compile("loved"), IntentTag.SUBMIT_RECOMMENDATION),
    ]
    match = classify_with_match("I loved it, recommend more", rules)
    assert match.label == IntentTag.REQUEST_RECOMMENDATION
