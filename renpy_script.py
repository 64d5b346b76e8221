"""
Build a Ren'Py animation script from an emotion model.

Each emotion is planned into a list of block records (a Composite image plus
optional eyes/mouth ATL images), then every record is rendered to text by a
pure formatting function.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from emotions import Emotion, sanitize_name

PORTRAIT_SIZE = (1024, 1024)
BLINK_HOLD_CHOICES: Tuple[Tuple[float, float], ...] = ((4.5, 1.0), (3.5, 1.0), (1.5, 1.0))
BLINK_CLOSED_HOLD = 0.25
LIPFLAP_HOLD = 0.2
SOURCE_REPO = "https://github.com/sh0wer1ee/DLPortraits"
SCRIPT_EXTENSION = ".rpy"
INDENT = "    "


@dataclass(frozen=True)
class CompositeImage:
    image_name: str
    size: Tuple[int, int]
    base_path: str
    offset: Tuple[int, int]
    face: str
    face_is_image: bool
    mouth_idle: str
    # Set when the mouth layer switches on the speaking signal.
    speaker: Optional[str] = None
    mouth_speaking: Optional[str] = None


@dataclass(frozen=True)
class EyesAnimation:
    image_name: str
    open_face: str
    closed_face: str
    hold_choices: Tuple[Tuple[float, float], ...] = BLINK_HOLD_CHOICES
    closed_hold: float = BLINK_CLOSED_HOLD


@dataclass(frozen=True)
class MouthAnimation:
    image_name: str
    open_mouth: str
    closed_mouth: str
    hold: float = LIPFLAP_HOLD


Block = Union[CompositeImage, EyesAnimation, MouthAnimation]


@dataclass(frozen=True)
class ScriptCharacter:
    character_id: str
    display_name: str
    base_path: str
    offset: Tuple[int, int]

    @property
    def token(self) -> str:
        return sanitize_name(self.display_name)


def quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def format_duration(seconds: float) -> str:
    # Ren'Py ATL accepts bare decimals; keep the short ".25" form.
    text = f"{seconds:g}"
    if text.startswith("0."):
        text = text[1:]
    return text


def plan_emotion(character: ScriptCharacter, emotion: Emotion) -> List[Block]:
    closed, opened = emotion.frames[0], emotion.frames[1]
    char_token = character.token
    token = emotion.token
    blink = emotion.blink
    lipflap = emotion.lipflap

    eyes_name = f"{char_token} eyes {token}"
    mouth_name = f"{char_token} mouth {token}"

    blocks: List[Block] = [
        CompositeImage(
            image_name=f"{char_token} {token}",
            size=PORTRAIT_SIZE,
            base_path=character.base_path,
            offset=character.offset,
            face=eyes_name if blink else closed.face,
            face_is_image=blink,
            mouth_idle=closed.mouth,
            speaker=char_token if lipflap else None,
            mouth_speaking=mouth_name if lipflap else None,
        )
    ]
    if blink:
        blocks.append(EyesAnimation(image_name=eyes_name, open_face=closed.face, closed_face=opened.face))
    if lipflap:
        blocks.append(MouthAnimation(image_name=mouth_name, open_mouth=opened.mouth, closed_mouth=closed.mouth))
    return blocks


def render_composite(block: CompositeImage) -> str:
    offset = f"({block.offset[0]}, {block.offset[1]})"
    if block.mouth_speaking is not None:
        mouth = f"WhileSpeaking({quote(block.speaker or '')}, {quote(block.mouth_speaking)}, {quote(block.mouth_idle)})"
    else:
        mouth = quote(block.mouth_idle)
    lines = [
        f"image {block.image_name} = Composite(",
        f"{INDENT}({block.size[0]}, {block.size[1]}),",
        f"{INDENT}(0, 0), {quote(block.base_path)},",
        f"{INDENT}{offset}, {quote(block.face)},",
        f"{INDENT}{offset}, {mouth},",
        ")",
    ]
    return "\n".join(lines)


def render_eyes(block: EyesAnimation) -> str:
    lines = [f"image {block.image_name}:", f"{INDENT}{quote(block.open_face)}"]
    for hold, weight in block.hold_choices:
        lines.append(f"{INDENT}choice:" if weight == 1.0 else f"{INDENT}choice {weight:g}:")
        lines.append(f"{INDENT}{INDENT}{format_duration(hold)}")
    lines.append(f"{INDENT}{quote(block.closed_face)}")
    lines.append(f"{INDENT}{format_duration(block.closed_hold)}")
    lines.append(f"{INDENT}repeat")
    return "\n".join(lines)


def render_mouth(block: MouthAnimation) -> str:
    lines = [
        f"image {block.image_name}:",
        f"{INDENT}{quote(block.open_mouth)}",
        f"{INDENT}{format_duration(block.hold)}",
        f"{INDENT}{quote(block.closed_mouth)}",
        f"{INDENT}{format_duration(block.hold)}",
        f"{INDENT}repeat",
    ]
    return "\n".join(lines)


def render_block(block: Block) -> str:
    if isinstance(block, CompositeImage):
        return render_composite(block)
    if isinstance(block, EyesAnimation):
        return render_eyes(block)
    if isinstance(block, MouthAnimation):
        return render_mouth(block)
    raise TypeError(f"Unknown block type: {type(block).__name__}")


def render_header(character: ScriptCharacter) -> str:
    return "\n".join(
        [
            f"# Character: {character.display_name}",
            f"# Remember to include portrait_data/{character.character_id} from {SOURCE_REPO} "
            "in the portrait_data folder in the Ren'Py project",
            f"# Base image: {character.base_path}",
            f"# Image tag: {character.token}",
        ]
    )


def check_capture_identity(character: ScriptCharacter, emotions: Sequence[Emotion]) -> List[str]:
    # Composites share the export-time offset; frames captured under another
    # character would be placed with the wrong offset.
    mismatched = [
        e.name for e in emotions
        if e.captured_for is not None and e.captured_for != character.character_id
    ]
    for name in mismatched:
        print(
            f"Warning: emotion '{name}' was captured under a different character "
            f"than {character.character_id}; its parts use offset {character.offset}"
        )
    return mismatched


def generate_script(character: ScriptCharacter, emotions: Iterable[Emotion]) -> str:
    emotions = list(emotions)
    check_capture_identity(character, emotions)
    sections = [render_header(character)]
    for emotion in emotions:
        sections.extend(render_block(block) for block in plan_emotion(character, emotion))
    return "\n\n".join(sections) + "\n"


def script_filename(character: ScriptCharacter) -> str:
    return character.token + SCRIPT_EXTENSION
