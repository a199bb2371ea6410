"""Tests for the mood scale helpers."""

from __future__ import annotations

import pytest

from serenote import mood

# ---- normalize ----


def test_normalize_one_to_five_passthrough():
    for v in (1, 2, 3, 4, 5):
        assert mood.normalize(v) == v


def test_normalize_overlap_prefers_one_to_five():
    # 1 and 2 are valid on both scales; the 1..5 reading wins
    assert mood.normalize(1) == 1
    assert mood.normalize(2) == 2


def test_normalize_centered_values():
    assert mood.normalize(-2) == 1
    assert mood.normalize(-1) == 2
    assert mood.normalize(0) == 3


def test_normalize_fractional():
    assert mood.normalize(-0.5) == 2.5
    assert mood.normalize(4.5) == 4.5


def test_normalize_is_idempotent():
    for v in (-2, -1, 0, 1, 2, 3, 4, 5, 2.5):
        once = mood.normalize(v)
        assert mood.normalize(once) == once


@pytest.mark.parametrize("bad", [None, True, False, 6, -3, float("nan"), "abc", [], {}])
def test_normalize_rejects(bad):
    assert mood.normalize(bad) is None


def test_normalize_numeric_string():
    assert mood.normalize("4") == 4


# ---- labels / emoji ----


def test_describe_known_value():
    d = mood.describe(4)
    assert d.normalized == 4
    assert d.label == "Good"
    assert d.emoji == "🙂"


def test_describe_centered_value():
    assert mood.describe(-2).label == "Very bad"


def test_describe_invalid_uses_placeholders():
    d = mood.describe(None)
    assert d.normalized is None
    assert d.label == mood.NO_LABEL
    assert d.emoji == mood.NO_EMOJI


def test_label_rounds_half_up():
    assert mood.to_label(2.5) == "Okay"
    assert mood.to_label(3.4) == "Okay"


def test_display_text():
    assert mood.display_text(5) == "Mood: 😄 Very good"
    assert mood.display_text("x") == "Mood: —"


# ---- averages ----


def test_average_to_label_thresholds():
    assert mood.average_to_label(None) == mood.NO_LABEL
    assert mood.average_to_label(1.49) == "Very bad"
    assert mood.average_to_label(1.5) == "Bad"
    assert mood.average_to_label(3.49) == "Okay"
    assert mood.average_to_label(4.5) == "Very good"


# ---- slider / legacy labels ----


def test_slider_index_round_trip():
    for centered in (-2, -1, 0, 1, 2):
        assert mood.centered_from_slider_index(mood.slider_index_from_centered(centered)) == centered


def test_slider_index_clamps():
    assert mood.slider_index_from_centered(7) == 4
    assert mood.centered_from_slider_index(-3) == -2


def test_centered_from_normalized():
    assert mood.centered_from_normalized(5) == 2
    assert mood.centered_from_normalized(1) == -2


def test_label_to_centered_english_and_legacy():
    assert mood.label_to_centered("Very good") == 2
    assert mood.label_to_centered("つらい") == -1


def test_label_to_centered_unknown_is_neutral():
    assert mood.label_to_centered("meh") == 0
    assert mood.label_to_centered(None) == 0
