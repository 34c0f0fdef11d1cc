"""
Unit tests for session name derivation
"""

import pytest
from app.services.session_names import DEFAULT_SESSION_NAME, summarize_session_name


class TestSummarizeSessionName:
    """Test display names derived from the first message"""

    @pytest.mark.parametrize("text", [None, "", "   ", "\n\t"])
    def test_empty_input_uses_placeholder(self, text):
        assert summarize_session_name(text) == DEFAULT_SESSION_NAME
        assert DEFAULT_SESSION_NAME == "Nueva conversación"

    def test_first_four_words_without_ellipsis(self):
        assert summarize_session_name("a b c d e") == "a b c d"

    def test_short_message_kept_whole(self):
        assert summarize_session_name("Hola") == "Hola"

    def test_whitespace_collapsed(self):
        assert summarize_session_name("  uno   dos\tTres\ncuatro cinco ") == "uno dos Tres cuatro"

    def test_exactly_30_characters_has_no_ellipsis(self):
        text = "abcdefghij abcdefghij abcdefgh"
        assert len(text) == 30

        assert summarize_session_name(text) == text

    def test_31_characters_gets_ellipsis(self):
        text = "abcdefghij abcdefghij abcdefghi"
        assert len(text) == 31

        assert summarize_session_name(text) == text + "..."

    def test_long_message_gets_four_words_and_ellipsis(self):
        text = "Necesito revisar mi contrato de alquiler hoy"
        assert len(text) == 44

        assert summarize_session_name(text) == "Necesito revisar mi contrato..."

    def test_untrimmed_length_counts_toward_ellipsis(self):
        # 19 characters of words, padded past 30 with whitespace
        text = "   uno dos tres cuatro         "

        assert summarize_session_name(text) == "uno dos tres cuatro..."

    def test_result_exactly_50_characters_is_kept(self):
        words = ["a" * 11, "b" * 11, "c" * 11, "d" * 11]
        text = " ".join(words)
        assert len(text) + 3 == 50

        result = summarize_session_name(text)

        assert result == text + "..."
        assert len(result) == 50

    def test_long_words_cut_to_50_characters(self):
        text = " ".join(["x" * 20] * 4)

        result = summarize_session_name(text)

        assert len(result) == 50
        assert result == text[:47] + "..."

    @pytest.mark.parametrize("length", [1, 29, 30, 31, 49, 50, 51, 200])
    def test_result_never_exceeds_50(self, length):
        assert len(summarize_session_name("y" * length)) <= 50
