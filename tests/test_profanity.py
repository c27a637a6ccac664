"""Tests for the blocklist profanity filter."""

import tempfile
from pathlib import Path

import pytest
import yaml

from civic.moderation.profanity import ProfanityFilter, load_blocklist


def test_blocklisted_word_is_removed():
    result = ProfanityFilter().filter("You are an idiot")
    assert result.detected
    assert result.cleaned_text == "You are an [REMOVED]"


def test_matching_is_case_insensitive():
    result = ProfanityFilter().filter("What an IDIOT. Total Moron!")
    assert result.cleaned_text == "What an [REMOVED]. Total [REMOVED]!"


def test_matching_respects_word_boundaries():
    f = ProfanityFilter()
    for text in ("That was idiotic", "Scunthorpe council", "classic assessment"):
        result = f.filter(text)
        assert not result.detected, text
        assert result.cleaned_text == text


def test_multi_word_phrase():
    f = ProfanityFilter(["shut up", "shut"])
    result = f.filter("Just shut up already")
    assert result.cleaned_text == "Just [REMOVED] already"


def test_filter_is_idempotent():
    f = ProfanityFilter()
    once = f.filter("you idiot, you moron").cleaned_text
    twice = f.filter(once)
    assert not twice.detected
    assert twice.cleaned_text == once


def test_clean_text_unchanged():
    result = ProfanityFilter().filter("Please fund the library.")
    assert not result.detected
    assert result.cleaned_text == "Please fund the library."


def test_empty_blocklist_never_matches():
    result = ProfanityFilter([]).filter("you idiot")
    assert not result.detected
    assert result.cleaned_text == "you idiot"


def test_terms_are_normalized():
    f = ProfanityFilter(["  Darn ", "", "heck", "HECK"])
    assert sorted(f.terms) == ["darn", "heck"]


def test_load_blocklist_from_list_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "blocklist.yaml"
        path.write_text(yaml.dump(["darn", "heck"]))

        f = ProfanityFilter.from_file(path)
        assert f.filter("oh heck").cleaned_text == "oh [REMOVED]"
        # Replaces, rather than extends, the default list.
        assert not f.filter("you idiot").detected


def test_load_blocklist_from_mapping_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "blocklist.yaml"
        path.write_text(yaml.dump({"blocklist": ["darn"]}))
        assert load_blocklist(path) == ["darn"]


def test_load_blocklist_rejects_scalar():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "blocklist.yaml"
        path.write_text("just a string\n")
        with pytest.raises(ValueError):
            load_blocklist(path)
