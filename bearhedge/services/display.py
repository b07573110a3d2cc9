"""In-memory stand-in for the page elements a widget writes to.

An element that the page does not carry is ``None``; writes to it are
skipped rather than raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .util.widget_defaults import static_root

ImageProbe = Callable[[str], bool]


@dataclass
class DisplayElement:
    base_class: str = ""
    src: Optional[str] = None
    text: str = ""
    classes: List[str] = field(default_factory=list)

    def reset_classes(self) -> None:
        self.classes = [self.base_class] if self.base_class else []

    def add_class(self, name: str) -> None:
        if name not in self.classes:
            self.classes.append(name)

    def as_dict(self) -> Dict[str, object]:
        return {"src": self.src, "text": self.text, "classes": list(self.classes)}


def accept_all(src: str) -> bool:
    return True


def static_file_probe(root: str) -> ImageProbe:
    """Probe that loads an image only when it exists under ``root``."""

    base = Path(root)

    def probe(src: str) -> bool:
        return (base / src.lstrip("/")).is_file()

    return probe


def default_probe() -> ImageProbe:
    root = static_root()
    return static_file_probe(root) if root else accept_all


@dataclass
class TofuDisplay:
    image: Optional[DisplayElement] = None
    status: Optional[DisplayElement] = None
    mood: Optional[DisplayElement] = None
    probe: ImageProbe = accept_all

    @classmethod
    def full(cls, probe: Optional[ImageProbe] = None) -> "TofuDisplay":
        return cls(
            image=DisplayElement(),
            status=DisplayElement(base_class="tofu-status"),
            mood=DisplayElement(base_class="tofu-mood"),
            probe=probe or default_probe(),
        )

    def show_image(self, src: str, fallback_src: str) -> Optional[str]:
        """Point the image at ``src``; swap to ``fallback_src`` if it won't load."""

        if self.image is None:
            return None
        self.image.src = src if self.probe(src) else fallback_src
        return self.image.src

    def set_status(self, text: str, style: Optional[str] = None) -> None:
        _write(self.status, text, style)

    def set_mood(self, text: str, style: Optional[str] = None) -> None:
        _write(self.mood, text, style)

    def snapshot(self) -> Dict[str, Optional[Dict[str, object]]]:
        return {
            "image": self.image.as_dict() if self.image else None,
            "status": self.status.as_dict() if self.status else None,
            "mood": self.mood.as_dict() if self.mood else None,
        }


def _write(el: Optional[DisplayElement], text: str, style: Optional[str]) -> None:
    if el is None:
        return
    el.reset_classes()
    el.text = text
    if style:
        el.add_class(style)
