"""Unit tests for cinepippin.text.predicates: pure text and interval classifiers."""

import pytest

from cinepippin.models import Frame
from cinepippin.text.predicates import (
    contains_word,
    count_words,
    ends_with_punctuation,
    ends_with_punctuation_or_bracket,
    ends_with_question_mark,
    ends_with_strong_punctuation,
    extract_first_word,
    extract_last_word,
    extract_word_from_single_word,
    format_timestamp,
    get_duration_seconds,
    has_non_alpha_before_last_word,
    has_time_overlap,
    is_excluded_word,
    is_single_word_with_punctuation,
    is_valid_t1_frame3,
    timestamp_to_seconds,
)


# ---------------------------------------------------------------------------
# Punctuation shape
# ---------------------------------------------------------------------------

class TestEndsWith:
    @pytest.mark.parametrize("text", ["Hello.", "Hello!", "Hello?", "Hello-", "Hello;", "Hello,"])
    def test_punctuation_marks(self, text):
        """Each of . ! ? - ; , counts as ending punctuation."""
        assert ends_with_punctuation(text)

    def test_no_punctuation(self):
        """A bare word does not end with punctuation."""
        assert not ends_with_punctuation("Hello")

    def test_trailing_whitespace_ignored(self):
        """The last non-whitespace character decides."""
        assert ends_with_punctuation("Hello.  \n")

    def test_multiline_uses_last_line(self):
        """Multi-line text is judged by its final line."""
        assert not ends_with_strong_punctuation("Stop!\nwait")
        assert ends_with_strong_punctuation("wait\nStop!")

    def test_strong_excludes_comma_and_dash(self):
        """Only . ! ? are strong."""
        assert not ends_with_strong_punctuation("Hello,")
        assert not ends_with_strong_punctuation("Hello-")
        assert ends_with_strong_punctuation("Hello?")

    def test_question_mark(self):
        assert ends_with_question_mark("Really?")
        assert not ends_with_question_mark("Really.")

    def test_bracket(self):
        """Closing brackets end a frame cleanly; commas do not."""
        assert ends_with_punctuation_or_bracket("[laughs]")
        assert ends_with_punctuation_or_bracket("(sighs)")
        assert not ends_with_punctuation_or_bracket("well,")

    def test_empty_text(self):
        """Empty text never ends with anything."""
        assert not ends_with_punctuation("")
        assert not ends_with_strong_punctuation("   ")


# ---------------------------------------------------------------------------
# Words
# ---------------------------------------------------------------------------

class TestSingleWord:
    @pytest.mark.parametrize("text", ["Bananas!", "don't.", "Wait-", "Hello;", 'Yes"', "Haydée."])
    def test_single_word_with_one_mark(self, text):
        """One word of letters/apostrophes followed by exactly one mark."""
        assert is_single_word_with_punctuation(text)

    @pytest.mark.parametrize("text", ["Bananas", "Bananas!!", "two words.", "R2D2.", "!"])
    def test_rejects_other_shapes(self, text):
        assert not is_single_word_with_punctuation(text)

    def test_extract_word_from_single_word(self):
        assert extract_word_from_single_word("Bananas!") == "bananas"


class TestFirstLastWord:
    def test_last_word_strips_punctuation_run(self):
        """Trailing punctuation runs are removed and the result lowercased."""
        assert extract_last_word("I love BANANAS?!") == "bananas"

    def test_first_word(self):
        assert extract_first_word("Well, maybe.") == "well"

    def test_empty(self):
        assert extract_last_word("   ") == ""
        assert extract_first_word("") == ""

    def test_count_words(self):
        assert count_words("  one two\nthree ") == 3

    def test_contains_word_whole_word_only(self):
        """Case-insensitive whole-word search does not match inside other words."""
        assert contains_word("I love BANANAS.", "bananas")
        assert not contains_word("bananasplit", "bananas")
        assert not contains_word("anything", "")


class TestHasNonAlphaBeforeLastWord:
    def test_no_whitespace_is_false(self):
        """A run-together or hyphenated token is a single word."""
        assert not has_non_alpha_before_last_word("well...bananas")
        assert not has_non_alpha_before_last_word("self-aware")

    def test_plain_sentence_is_false(self):
        assert not has_non_alpha_before_last_word("I love bananas.")

    def test_comma_is_soft(self):
        """A comma between the last two words is allowed."""
        assert not has_non_alpha_before_last_word("Yes, bananas.")

    @pytest.mark.parametrize("text", ["The answer: bananas.", "I said -- bananas", "Well... bananas"])
    def test_hard_separators(self, text):
        """Colon, double dash and ellipsis are hard separators."""
        assert has_non_alpha_before_last_word(text)

    def test_single_word_with_spaces_is_false(self):
        """Fewer than two words cannot have a gap."""
        assert not has_non_alpha_before_last_word("  bananas.  ")


class TestExclusionAndValidity:
    @pytest.mark.parametrize("word", ["the", "YES", "Nothing", "i", "nada"])
    def test_excluded(self, word):
        assert is_excluded_word(word)

    def test_not_excluded(self):
        assert not is_excluded_word("bananas")

    def test_valid_t1_frame3(self):
        assert is_valid_t1_frame3("I love bananas.")
        assert not is_valid_t1_frame3("I love bananas,")
        assert not is_valid_t1_frame3("   ")


# ---------------------------------------------------------------------------
# Timestamps and intervals
# ---------------------------------------------------------------------------

class TestTimestamps:
    def test_to_seconds(self):
        assert timestamp_to_seconds("01:02:03,456") == pytest.approx(3723.456)

    def test_dot_separator(self):
        assert timestamp_to_seconds("00:00:01.5") == pytest.approx(1.5)

    def test_invalid(self):
        with pytest.raises(ValueError):
            timestamp_to_seconds("not a time")

    def test_format(self):
        assert format_timestamp(3723.456) == "01:02:03,456"
        assert format_timestamp(-2.0) == "00:00:00,000"

    def test_duration_is_floored(self):
        """Duration runs from the first frame's start to the last frame's end."""
        a = Frame.from_lines(1, "00:00:01,000", "00:00:02,000", ["a"])
        b = Frame.from_lines(2, "00:00:05,000", "00:00:06,900", ["b"])
        assert get_duration_seconds(a, b) == 5


class TestHasTimeOverlap:
    def test_overlap(self):
        assert has_time_overlap((5.0, 10.0), [(8.0, 12.0)])

    def test_touching_is_not_overlap(self):
        """Half-open intervals: end == start does not overlap."""
        assert not has_time_overlap((10.0, 15.0), [(5.0, 10.0)])
        assert not has_time_overlap((0.0, 5.0), [(5.0, 10.0)])

    def test_containment(self):
        assert has_time_overlap((6.0, 7.0), [(5.0, 10.0)])

    def test_any_of_several(self):
        assert has_time_overlap((20.0, 25.0), [(0.0, 5.0), (24.0, 30.0)])
        assert not has_time_overlap((20.0, 25.0), [(0.0, 5.0), (25.0, 30.0)])

    def test_empty_existing(self):
        assert not has_time_overlap((0.0, 1.0), [])
