"""
Emotion model: named emotions, each holding two captured face/mouth frames.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

FRAME_LABELS = ("Eye Open, Mouth Closed", "Eye Closed, Mouth Open")


@dataclass
class PortraitSelection:
    """Live picker state for the active character. Paths are catalog-relative."""

    character_id: str = ""
    base_path: str = ""
    offset: Tuple[int, int] = (0, 0)
    face_path: str = ""
    mouth_path: str = ""

    def reset(self) -> None:
        self.character_id = ""
        self.base_path = ""
        self.offset = (0, 0)
        self.face_path = ""
        self.mouth_path = ""


def sanitize_name(name: str) -> str:
    # Ren'Py image-name token: no parentheses, lowercase, spaces -> underscores.
    return "_".join(name.replace("(", "").replace(")", "").lower().split(" "))


@dataclass(frozen=True)
class Frame:
    face: str = ""
    mouth: str = ""


@dataclass
class Emotion:
    name: str
    frames: List[Frame] = field(default_factory=lambda: [Frame(), Frame()])
    # Catalog id of the character the frames were last captured under.
    captured_for: Optional[str] = None

    @property
    def token(self) -> str:
        return sanitize_name(self.name)

    @property
    def blink(self) -> bool:
        return has_blink(self.frames[0], self.frames[1])

    @property
    def lipflap(self) -> bool:
        return has_lipflap(self.frames[0], self.frames[1])


def has_blink(closed: Frame, opened: Frame) -> bool:
    return opened.face != closed.face and opened.face != ""


def has_lipflap(closed: Frame, opened: Frame) -> bool:
    return opened.mouth != closed.mouth and opened.mouth != ""


class EmotionModel:
    """
    Ordered stack of emotions.

    Handles are positional indices. Removal only ever pops the newest
    emotion, so a handle stays valid for as long as its emotion exists.
    """

    def __init__(self) -> None:
        self._emotions: List[Emotion] = []

    def __len__(self) -> int:
        return len(self._emotions)

    def __iter__(self) -> Iterator[Emotion]:
        return iter(self._emotions)

    def __getitem__(self, handle: int) -> Emotion:
        if handle < 0:
            raise IndexError(f"Invalid emotion handle: {handle}")
        return self._emotions[handle]

    def add_emotion(self) -> int:
        handle = len(self._emotions)
        self._emotions.append(Emotion(name=f"undefined_{handle}"))
        return handle

    def capture_frame(self, handle: int, frame_index: int, selection: PortraitSelection) -> Frame:
        # Empty face/mouth is captured as-is.
        if frame_index not in (0, 1):
            raise ValueError(f"Frame index must be 0 or 1, got {frame_index}")
        emotion = self[handle]
        frame = Frame(face=selection.face_path, mouth=selection.mouth_path)
        emotion.frames[frame_index] = frame
        if selection.character_id:
            emotion.captured_for = selection.character_id
        return frame

    def rename_emotion(self, handle: int, raw_name: str) -> None:
        self[handle].name = raw_name

    def remove_last(self) -> Optional[Emotion]:
        # Empty pop is a no-op.
        if not self._emotions:
            return None
        return self._emotions.pop()

    def clear(self) -> None:
        self._emotions.clear()
