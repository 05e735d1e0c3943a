"""Unit tests for artifact types and response parsers."""

import pytest
from pydantic import ValidationError

from studygen.artifacts import (
    Flashcard,
    FlashcardOptions,
    Flashcards,
    MindmapOptions,
    SummaryOptions,
    parse_chat,
    parse_flashcards,
    parse_mindmap,
    parse_summary,
)
from studygen.errors import InvalidResponseError


@pytest.mark.unit
class TestOptions:
    """Tests for request option models."""

    def test_summary_defaults(self):
        options = SummaryOptions()
        assert (options.style, options.depth, options.length) == ("conceptual", "intermediate", "medium")

    def test_summary_cache_options(self):
        options = SummaryOptions(style="detailed", depth="basic", length="short")
        assert options.cache_options() == {
            "kind": "summary",
            "style": "detailed",
            "depth": "basic",
            "length": "short",
        }

    def test_summary_rejects_unknown_style(self):
        with pytest.raises(ValidationError):
            SummaryOptions(style="poetic")

    @pytest.mark.parametrize("count", [4, 21])
    def test_flashcard_count_bounds(self, count):
        with pytest.raises(ValidationError):
            FlashcardOptions(count=count)

    def test_option_kinds_differ(self):
        """Artifacts of different kinds never share cache options."""
        kinds = {
            SummaryOptions().cache_options()["kind"],
            FlashcardOptions().cache_options()["kind"],
            MindmapOptions().cache_options()["kind"],
        }
        assert kinds == {"summary", "flashcards", "mindmap"}


@pytest.mark.unit
class TestParseSummary:
    """Tests for parse_summary function."""

    def test_valid_summary(self, summary_text):
        summary = parse_summary("\n" + summary_text + "\n\n")
        assert summary.text == summary_text
        assert summary.kind == "summary"

    @pytest.mark.parametrize("raw", ["", "   ", "# Too short"])
    def test_empty_or_short(self, raw):
        with pytest.raises(InvalidResponseError):
            parse_summary(raw)

    def test_model_reports_missing_document(self):
        raw = "I'm sorry, but the document content was not provided, so I cannot summarize it for you."
        with pytest.raises(InvalidResponseError, match="missing"):
            parse_summary(raw)

    def test_plain_text_accepted_with_warning(self, caplog):
        raw = "Photosynthesis converts light into chemical energy stored as glucose in plants."
        assert parse_summary(raw).text == raw
        assert "no markdown headings" in caplog.text


@pytest.mark.unit
class TestParseFlashcards:
    """Tests for parse_flashcards function."""

    def test_json_fence(self, flashcard_response):
        flashcards = parse_flashcards(flashcard_response)

        assert len(flashcards.cards) == 2
        assert flashcards.cards[0].question == "Where does photosynthesis take place?"
        assert flashcards.kind == "flashcards"

    def test_plain_fence(self):
        raw = '```\n[{"question": "Q1?", "answer": "A1"}]\n```'
        assert parse_flashcards(raw).cards == [Flashcard(question="Q1?", answer="A1")]

    def test_bare_array_with_chatter(self):
        raw = 'Sure! [{"question": "Q1?", "answer": "A1"}] Hope this helps.'
        assert len(parse_flashcards(raw).cards) == 1

    def test_wrapped_object(self):
        raw = '{"flashcards": [{"question": " Q1? ", "answer": 42}]}'
        card = parse_flashcards(raw).cards[0]
        assert card.question == "Q1?"
        assert card.answer == "42"

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "no json here",
            "[]",
            '[{"question": "Q1?"}]',
            '[{"question": "", "answer": "A"}]',
            '{"cards": []}',
            "```json\n[{broken\n```",
        ],
    )
    def test_invalid(self, raw):
        with pytest.raises(InvalidResponseError):
            parse_flashcards(raw)

    def test_fewer_than_requested_warns(self, flashcard_response, caplog):
        parse_flashcards(flashcard_response, expected=10)
        assert "instead of 10" in caplog.text

    def test_json_round_trip_for_cache(self, flashcard_response):
        flashcards = parse_flashcards(flashcard_response)
        assert Flashcards.from_json(flashcards.to_json()) == flashcards


@pytest.mark.unit
class TestParseMindmap:
    """Tests for parse_mindmap function."""

    def test_plain_markdown(self):
        raw = "# Photosynthesis\n## Light reactions\n- ATP\n## Calvin cycle"
        assert parse_mindmap(raw).markdown == raw

    def test_strips_markdown_fence(self):
        raw = "```markdown\n# Root\n## Branch\n```"
        assert parse_mindmap(raw).markdown == "# Root\n## Branch"

    def test_requires_headings(self):
        with pytest.raises(InvalidResponseError, match="no headings"):
            parse_mindmap("- just\n- bullets")


@pytest.mark.unit
class TestParseChat:
    """Tests for parse_chat function."""

    def test_strips_answer(self):
        assert parse_chat("  The answer.  ").text == "The answer."

    def test_empty(self):
        with pytest.raises(InvalidResponseError):
            parse_chat("\n")
