"""Tests for speech text sanitization."""

from speech.sanitizer import sanitize_for_speech


class TestSanitizeForSpeech:
    """Test removal of markup before synthesis."""

    def test_documented_example(self):
        """Test emphasis, quotes and links are removed together."""
        assert sanitize_for_speech('*hi* "there" [link](http://x))') == "hi there link"

    def test_link_collapses_to_label(self):
        """Test markdown links keep only their label."""
        result = sanitize_for_speech("See [the docs](https://example.com/docs) for more")
        assert result == "See the docs for more"

    def test_symbols_removed(self):
        """Test heading, quote-block and code markers are dropped."""
        assert sanitize_for_speech("# Title > `code` _x_") == " Title  code x"

    def test_plain_text_unchanged(self):
        """Test text without markup passes through."""
        text = "Your password has been reset. Anything else?"
        assert sanitize_for_speech(text) == text

    def test_idempotent(self):
        """Test sanitizing twice gives the same result as once."""
        samples = [
            '*hi* "there" [link](http://x))',
            "[a](b)](c)",
            "[[nested](x)](y)",
            "it's **bold** and `code`",
            "",
            "((()))[][]",
        ]

        for sample in samples:
            once = sanitize_for_speech(sample)
            assert sanitize_for_speech(once) == once
