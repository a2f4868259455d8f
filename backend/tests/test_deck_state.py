"""Tests for the editable deck state and the editing session."""

import pytest

from deck_errors import InvalidResponse, UpstreamError, ValidationError
from deck_exporters import export_pdf, export_pptx
from deck_models import Slide
from deck_state import (
    Deck,
    DeckEditor,
    add_slide,
    initialize,
    remove_slide,
    reorder,
    replace_slide,
    select,
    update_field,
)


def _titles(deck):
    return [slide.title for slide in deck]


def _numbers(deck):
    return [slide.slide_number for slide in deck]


@pytest.fixture
def abc_deck():
    return initialize([
        Slide(title="A", content="a"),
        Slide(title="B", content="b"),
        Slide(title="C", content="c"),
    ])


class TestInitialize:
    """Test cases for building a deck from generated slides."""

    def test_empty_input_gives_empty_deck(self):
        deck = initialize([])

        assert len(deck) == 0
        assert deck.selected_id is None
        assert deck.selected is None

    def test_assigns_ids_strips_images_and_renumbers(self, sample_slide_dicts):
        sample_slide_dicts[0]["slideNumber"] = 7

        deck = initialize(sample_slide_dicts)

        assert _numbers(deck) == [1, 2, 3]
        assert all(slide.id for slide in deck)
        assert len(set(deck.ids)) == 3
        assert all(slide.image is None for slide in deck)
        assert deck.selected_id == deck[0].id

    def test_existing_ids_are_preserved(self):
        deck = initialize([Slide(id="keep-me", title="A"), Slide(title="B")])

        assert deck[0].id == "keep-me"
        assert deck[1].id and deck[1].id != "keep-me"

    def test_duplicate_ids_are_reassigned(self):
        deck = initialize([Slide(id="dup", title="A"), Slide(id="dup", title="B")])

        assert deck[0].id == "dup"
        assert deck[1].id != "dup"

    def test_does_not_mutate_input(self, sample_slides):
        before = list(sample_slides)

        initialize(sample_slides)

        assert sample_slides == before
        assert sample_slides[0].image is not None


class TestUpdateField:
    """Test cases for editing a slide's title or content."""

    def test_changes_exactly_one_field_of_one_slide(self, abc_deck):
        target = abc_deck[1]

        updated = update_field(abc_deck, target.id, "title", "Bee")

        assert updated[1].title == "Bee"
        assert updated[1].content == "b"
        assert updated[1].id == target.id
        assert updated[0] is abc_deck[0]
        assert updated[2] is abc_deck[2]
        assert abc_deck[1].title == "B"

    def test_content_field(self, abc_deck):
        updated = update_field(abc_deck, abc_deck[0].id, "content", "new body")

        assert updated[0].content == "new body"
        assert updated[0].title == "A"

    def test_non_string_values_are_stored_as_text(self, abc_deck):
        updated = update_field(abc_deck, abc_deck[0].id, "content", 5)

        assert updated[0].content == "5"
        assert export_pdf(updated).startswith(b"%PDF")
        assert export_pptx(updated)

    def test_none_value_clears_field(self, abc_deck):
        assert update_field(abc_deck, abc_deck[0].id, "title", None)[0].title == ""

    def test_unknown_id_is_a_noop(self, abc_deck):
        assert update_field(abc_deck, "missing", "title", "x") is abc_deck

    def test_rejects_non_editable_field(self, abc_deck):
        with pytest.raises(ValidationError):
            update_field(abc_deck, abc_deck[0].id, "slide_number", "9")


class TestAddSlide:
    """Test cases for appending blank slides."""

    def test_appends_placeholder_and_selects_it(self, abc_deck):
        deck = add_slide(abc_deck)

        assert len(deck) == len(abc_deck) + 1
        new_slide = deck[-1]
        assert new_slide.slide_number == len(deck)
        assert new_slide.title == "New Slide 4"
        assert new_slide.content == ""
        assert deck.selected_id == new_slide.id

    def test_two_additions_to_empty_deck(self):
        deck = add_slide(add_slide(initialize([])))

        assert len(deck) == 2
        assert len(set(deck.ids)) == 2
        assert _numbers(deck) == [1, 2]
        assert _titles(deck) == ["New Slide 1", "New Slide 2"]


class TestReorder:
    """Test cases for moving slides."""

    def test_first_to_last(self, abc_deck):
        deck = reorder(abc_deck, 0, 2)

        assert _titles(deck) == ["B", "C", "A"]
        assert _numbers(deck) == [1, 2, 3]
        assert deck[2].id == abc_deck[0].id
        assert _titles(abc_deck) == ["A", "B", "C"]

    @pytest.mark.parametrize("from_index", range(4))
    @pytest.mark.parametrize("to_index", range(4))
    def test_moved_slide_lands_at_target(self, from_index, to_index):
        deck = initialize([Slide(title=name) for name in "WXYZ"])
        moved = deck[from_index]

        result = reorder(deck, from_index, to_index)

        assert result[to_index].id == moved.id
        assert [slide.slide_number for slide in result] == [1, 2, 3, 4]
        assert sorted(result.ids) == sorted(deck.ids)

    @pytest.mark.parametrize("from_index,to_index", [(3, 0), (0, 3), (-1, 0), (0, -1)])
    def test_out_of_range_raises(self, abc_deck, from_index, to_index):
        with pytest.raises(ValidationError):
            reorder(abc_deck, from_index, to_index)

    def test_validation_error_is_a_value_error(self, abc_deck):
        with pytest.raises(ValueError):
            reorder(abc_deck, 5, 0)

    def test_selection_survives_reorder(self, abc_deck):
        deck = select(abc_deck, abc_deck[1].id)

        result = reorder(deck, 1, 0)

        assert result.selected_id == abc_deck[1].id


class TestReplaceSlide:
    """Test cases for applying a regenerated slide."""

    def test_keeps_identity_and_position(self, abc_deck):
        target = abc_deck[1]

        deck = replace_slide(abc_deck, target.id, Slide(id="other", slide_number=9, title="New", content="Body"))

        assert deck[1].id == target.id
        assert deck[1].slide_number == 2
        assert deck[1].title == "New"
        assert deck[1].content == "Body"

    def test_accepts_wire_dict(self, abc_deck):
        deck = replace_slide(abc_deck, abc_deck[0].id, {"title": "T", "content": "C"})

        assert (deck[0].title, deck[0].content) == ("T", "C")

    def test_unknown_id_leaves_deck_identical(self, abc_deck):
        result = replace_slide(abc_deck, "missing", Slide(title="X"))

        assert result is abc_deck
        assert result == abc_deck


class TestRemoveAndSelect:
    """Test cases for selection and removal."""

    def test_select_unknown_is_noop(self, abc_deck):
        assert select(abc_deck, "missing") is abc_deck

    def test_remove_renumbers_and_falls_back_to_first(self, abc_deck):
        deck = select(abc_deck, abc_deck[1].id)

        result = remove_slide(deck, abc_deck[1].id)

        assert _titles(result) == ["A", "C"]
        assert _numbers(result) == [1, 2]
        assert result.selected_id == abc_deck[0].id

    def test_removing_last_slide_clears_selection(self):
        deck = initialize([Slide(title="Only")])

        result = remove_slide(deck, deck[0].id)

        assert len(result) == 0
        assert result.selected_id is None


class TestDeckEditor:
    """Test cases for the editing session around the generation gateway."""

    @pytest.fixture
    def editor(self, gateway):
        return DeckEditor(gateway)

    def test_generate_loads_deck(self, editor, fake_client, deck_reply):
        fake_client.queue(deck_reply)

        deck = editor.generate("Company Name: TechCo")

        assert _titles(deck) == ["Introduction", "Problem Statement", "Our Solution"]
        assert editor.deck is deck
        assert all(slide.image is None for slide in deck)

    def test_failed_generation_keeps_previous_deck(self, editor, fake_client):
        fake_client.queue("not json")

        with pytest.raises(InvalidResponse):
            editor.generate("Company Name: TechCo")

        assert editor.deck == Deck()

    def test_failed_generation_keeps_loaded_deck(self, editor, fake_client, deck_reply):
        fake_client.queue(deck_reply, UpstreamError("provider down"))
        loaded = editor.generate("first")

        with pytest.raises(UpstreamError):
            editor.generate("second")

        assert editor.deck is loaded

    def test_regenerate_applies_revision_and_clears_feedback(self, editor, fake_client, deck_reply):
        fake_client.queue(deck_reply, '{"title": "Sharper Problem", "content": "Costs\\nDelays"}')
        deck = editor.generate("prompt")
        slide_id = deck[1].id
        editor.set_feedback(slide_id, "mention costs")

        result = editor.regenerate(slide_id)

        assert result[1].id == slide_id
        assert result[1].title == "Sharper Problem"
        assert "mention costs" in fake_client.prompts[-1]
        ws = editor.workspace(slide_id)
        assert ws.feedback == ""
        assert ws.regenerating is False

    def test_failed_regenerate_leaves_slide_untouched(self, editor, fake_client, deck_reply):
        fake_client.queue(deck_reply, "not json")
        deck = editor.generate("prompt")
        slide_id = deck[0].id

        with pytest.raises(InvalidResponse):
            editor.regenerate(slide_id)

        assert editor.deck == deck
        assert editor.workspace(slide_id).regenerating is False

    def test_regenerate_unknown_slide_is_noop(self, editor, fake_client):
        editor.load([Slide(title="A")])

        assert editor.regenerate("missing") is editor.deck
        assert fake_client.prompts == []

    def test_ask_for_notes_records_conversation(self, editor, fake_client):
        editor.load([Slide(title="Team", content="Founders")])
        slide_id = editor.deck[0].id
        fake_client.queue("  Introduce the founders with confidence.  ")

        notes = editor.ask_for_notes(slide_id, "Help me present this")

        assert notes == "Introduce the founders with confidence."
        history = editor.workspace(slide_id).chat_history
        assert [(m.user, m.text) for m in history] == [
            ("user", "Help me present this"),
            ("ai", "Introduce the founders with confidence."),
        ]
        assert editor.workspace(slide_id).chatting is False

    def test_blank_chat_message_is_ignored(self, editor, fake_client):
        editor.load([Slide(title="Team")])

        assert editor.ask_for_notes(editor.deck[0].id, "   ") is None
        assert fake_client.prompts == []

    def test_removing_slide_purges_transient_state(self, editor):
        editor.load([Slide(title="A"), Slide(title="B")])
        first, second = editor.deck.ids
        editor.set_feedback(first, "shorter")
        editor.set_feedback(second, "longer")

        editor.remove_slide(first)

        assert set(editor.workspaces) == {second}
        assert editor.workspace(first) is None

    def test_editing_operations_update_current_deck(self, editor):
        editor.load([Slide(title="A"), Slide(title="B")])

        editor.add_slide()
        editor.update_field(editor.deck[0].id, "title", "Alpha")
        editor.reorder(0, 2)

        assert _titles(editor.deck) == ["B", "New Slide 3", "Alpha"]
        assert _numbers(editor.deck) == [1, 2, 3]

    def test_editor_without_gateway_refuses_generation(self):
        with pytest.raises(ValidationError):
            DeckEditor().generate("prompt")
