"""
Slide data model and its JSON wire representation
"""

import uuid
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

EDITABLE_FIELDS = ("title", "content")


def new_slide_id() -> str:
    """Generate an opaque slide identifier"""
    return uuid.uuid4().hex


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return "\n".join(as_text(item) for item in value)
    return str(value)


@dataclass(frozen=True)
class Slide:
    """Individual pitch slide"""
    slide_number: int = 0
    title: str = ""
    content: str = ""
    id: Optional[str] = None
    image: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Slide":
        """Build a slide from the camelCase wire shape, tolerating gaps"""
        number = data.get("slideNumber", data.get("slide_number", 0))
        try:
            number = int(number)
        except (TypeError, ValueError):
            number = 0

        slide_id = data.get("id")
        image = data.get("image")
        return cls(
            slide_number=number,
            title=as_text(data.get("title")),
            content=as_text(data.get("content")),
            id=as_text(slide_id) if slide_id not in (None, "") else None,
            image=as_text(image) if image else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.id is not None:
            data["id"] = self.id
        data["slideNumber"] = self.slide_number
        data["title"] = self.title
        data["content"] = self.content
        if self.image is not None:
            data["image"] = self.image
        return data

    def with_changes(self, **changes) -> "Slide":
        return replace(self, **changes)
