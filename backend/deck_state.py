"""
Editable deck state: an ordered, renumbered list of slides plus the
per-slide scratch state used while editing.

Every operation on a Deck returns a new Deck and leaves its input untouched,
so callers can keep the previous value around (e.g. to restore it after a
failed generation call). Unknown slide ids are silent no-ops.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from deck_errors import ValidationError
from deck_models import EDITABLE_FIELDS, Slide, as_text, new_slide_id

logger = logging.getLogger(__name__)

SlideLike = Union[Slide, Dict]


@dataclass(frozen=True)
class Deck:
    """Ordered collection of slides; slide_number always equals index + 1"""
    slides: Tuple[Slide, ...] = ()
    selected_id: Optional[str] = None

    def __len__(self) -> int:
        return len(self.slides)

    def __iter__(self) -> Iterator[Slide]:
        return iter(self.slides)

    def __getitem__(self, index: int) -> Slide:
        return self.slides[index]

    def index_of(self, slide_id: str) -> Optional[int]:
        for index, slide in enumerate(self.slides):
            if slide.id == slide_id:
                return index
        return None

    def get(self, slide_id: str) -> Optional[Slide]:
        index = self.index_of(slide_id)
        return None if index is None else self.slides[index]

    @property
    def ids(self) -> List[str]:
        return [slide.id for slide in self.slides]

    @property
    def selected(self) -> Optional[Slide]:
        """Currently selected slide, or the first one if nothing is selected"""
        if self.selected_id is not None:
            slide = self.get(self.selected_id)
            if slide is not None:
                return slide
        return self.slides[0] if self.slides else None

    def to_list(self) -> List[Dict]:
        return [slide.to_dict() for slide in self.slides]


def _coerce(slide: SlideLike) -> Slide:
    return slide if isinstance(slide, Slide) else Slide.from_dict(slide)


def _renumber(slides: Iterable[Slide]) -> Tuple[Slide, ...]:
    renumbered = []
    for index, slide in enumerate(slides):
        if slide.slide_number != index + 1:
            slide = slide.with_changes(slide_number=index + 1)
        renumbered.append(slide)
    return tuple(renumbered)


def _fallback_selection(slides: Tuple[Slide, ...], selected_id: Optional[str]) -> Optional[str]:
    if selected_id is not None and any(slide.id == selected_id for slide in slides):
        return selected_id
    return slides[0].id if slides else None


def initialize(slides: Iterable[SlideLike]) -> Deck:
    """Build a fresh deck from generated (or client supplied) slides.

    Existing ids are kept, missing or duplicate ids get a new one, images are
    dropped and slide numbers are recomputed from position.
    """
    seen = set()
    prepared = []
    for index, raw in enumerate(slides):
        slide = _coerce(raw)
        slide_id = slide.id
        if not slide_id or slide_id in seen:
            slide_id = new_slide_id()
        seen.add(slide_id)
        prepared.append(slide.with_changes(id=slide_id, slide_number=index + 1, image=None))

    prepared = tuple(prepared)
    return Deck(slides=prepared, selected_id=prepared[0].id if prepared else None)


def update_field(deck: Deck, slide_id: str, field_name: str, value: str) -> Deck:
    if field_name not in EDITABLE_FIELDS:
        raise ValidationError(f"Field '{field_name}' is not editable")

    index = deck.index_of(slide_id)
    if index is None:
        return deck

    slides = list(deck.slides)
    slides[index] = slides[index].with_changes(**{field_name: as_text(value)})
    return Deck(slides=tuple(slides), selected_id=deck.selected_id)


def add_slide(deck: Deck) -> Deck:
    """Append a blank placeholder slide and select it"""
    number = len(deck) + 1
    slide = Slide(id=new_slide_id(), slide_number=number, title=f"New Slide {number}", content="")
    return Deck(slides=deck.slides + (slide,), selected_id=slide.id)


def reorder(deck: Deck, from_index: int, to_index: int) -> Deck:
    """Move the slide at from_index to to_index and renumber every slide"""
    size = len(deck)
    for name, index in (("from_index", from_index), ("to_index", to_index)):
        if not 0 <= index < size:
            raise ValidationError(f"{name} {index} is out of range for a deck of {size} slides")

    slides = list(deck.slides)
    moved = slides.pop(from_index)
    slides.insert(to_index, moved)
    slides = _renumber(slides)
    return Deck(slides=slides, selected_id=_fallback_selection(slides, deck.selected_id))


def replace_slide(deck: Deck, slide_id: str, new_slide: SlideLike) -> Deck:
    """Overwrite title and content of a slide, keeping its id and position"""
    index = deck.index_of(slide_id)
    if index is None:
        return deck

    incoming = _coerce(new_slide)
    slides = list(deck.slides)
    slides[index] = slides[index].with_changes(title=incoming.title, content=incoming.content)
    return Deck(slides=tuple(slides), selected_id=deck.selected_id)


def select(deck: Deck, slide_id: str) -> Deck:
    if deck.index_of(slide_id) is None or deck.selected_id == slide_id:
        return deck
    return Deck(slides=deck.slides, selected_id=slide_id)


def remove_slide(deck: Deck, slide_id: str) -> Deck:
    index = deck.index_of(slide_id)
    if index is None:
        return deck

    slides = _renumber(slide for slide in deck.slides if slide.id != slide_id)
    return Deck(slides=slides, selected_id=_fallback_selection(slides, deck.selected_id))


# Editing session

@dataclass
class ChatMessage:
    """One line of the speaker notes conversation"""
    user: str
    text: str


@dataclass
class SlideWorkspace:
    """Transient per-slide state; never exported or persisted"""
    feedback: str = ""
    chat_history: List[ChatMessage] = field(default_factory=list)
    regenerating: bool = False
    chatting: bool = False


class DeckEditor:
    """Single-user editing session over one deck.

    Holds the current Deck, the transient state of each slide and the
    generation gateway used for AI round-trips. Deck writes only happen after
    a gateway call has fully succeeded; errors are re-raised to the caller.
    """

    def __init__(self, gateway=None):
        self.gateway = gateway
        self.deck = Deck()
        self._workspaces: Dict[str, SlideWorkspace] = {}

    def _require_gateway(self):
        if self.gateway is None:
            raise ValidationError("No generation gateway configured for this editor")
        return self.gateway

    def _purge_workspaces(self):
        live = set(self.deck.ids)
        for slide_id in list(self._workspaces):
            if slide_id not in live:
                del self._workspaces[slide_id]

    def workspace(self, slide_id: str) -> Optional[SlideWorkspace]:
        if self.deck.index_of(slide_id) is None:
            return None
        return self._workspaces.setdefault(slide_id, SlideWorkspace())

    @property
    def workspaces(self) -> Dict[str, SlideWorkspace]:
        return dict(self._workspaces)

    def load(self, slides: Iterable[SlideLike]) -> Deck:
        self.deck = initialize(slides)
        self._purge_workspaces()
        return self.deck

    def generate(self, prompt: str) -> Deck:
        slides = self._require_gateway().generate_deck(prompt)
        logger.info(f"Loaded generated deck with {len(slides)} slides")
        return self.load(slides)

    def add_slide(self) -> Deck:
        self.deck = add_slide(self.deck)
        return self.deck

    def update_field(self, slide_id: str, field_name: str, value: str) -> Deck:
        self.deck = update_field(self.deck, slide_id, field_name, value)
        return self.deck

    def reorder(self, from_index: int, to_index: int) -> Deck:
        self.deck = reorder(self.deck, from_index, to_index)
        return self.deck

    def select(self, slide_id: str) -> Deck:
        self.deck = select(self.deck, slide_id)
        return self.deck

    def remove_slide(self, slide_id: str) -> Deck:
        self.deck = remove_slide(self.deck, slide_id)
        self._purge_workspaces()
        return self.deck

    def set_feedback(self, slide_id: str, text: str):
        ws = self.workspace(slide_id)
        if ws is not None:
            ws.feedback = text or ""

    def regenerate(self, slide_id: str) -> Deck:
        """Ask the AI to revise one slide using its pending feedback"""
        slide = self.deck.get(slide_id)
        if slide is None:
            return self.deck

        gateway = self._require_gateway()
        ws = self.workspace(slide_id)
        ws.regenerating = True
        try:
            revised = gateway.regenerate_slide(slide, ws.feedback)
        finally:
            ws.regenerating = False
            ws.feedback = ""

        # last write wins if the slide was edited while the call was in flight
        self.deck = replace_slide(self.deck, slide_id, revised)
        return self.deck

    def ask_for_notes(self, slide_id: str, message: str) -> Optional[str]:
        """Record a chat message and answer it with generated speaker notes"""
        text = (message or "").strip()
        slide = self.deck.get(slide_id)
        if not text or slide is None:
            return None

        gateway = self._require_gateway()
        ws = self.workspace(slide_id)
        ws.chat_history.append(ChatMessage(user="user", text=text))
        ws.chatting = True
        try:
            notes = gateway.generate_speaker_notes(slide.title, slide.content)
        finally:
            ws.chatting = False

        ws.chat_history.append(ChatMessage(user="ai", text=notes))
        return notes
