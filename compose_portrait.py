"""
Composite base + face + mouth portrait layers, and build preview/contact-sheet images.
"""

from __future__ import annotations

import io
from typing import Callable, Iterable, List, Optional, Tuple

from PIL import Image, ImageDraw

from emotions import Emotion, FRAME_LABELS, PortraitSelection
from renpy_script import PORTRAIT_SIZE

ImageLoader = Callable[[str], Image.Image]

SHEET_THUMB = 256
SHEET_LABEL_HEIGHT = 20
SHEET_BACKGROUND = (32, 32, 32, 255)
SHEET_TEXT = (230, 230, 230, 255)


class ComposeError(Exception):
    pass


def draw_layer(canvas: Image.Image, layer: Image.Image, offset: Tuple[int, int]) -> Image.Image:
    # Source-over at an offset; parts hanging off the canvas are clipped.
    positioned = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    positioned.paste(layer.convert("RGBA"), offset)
    return Image.alpha_composite(canvas, positioned)


def compose_layers(
    loader: ImageLoader,
    base_path: str,
    offset: Tuple[int, int],
    face_path: str = "",
    mouth_path: str = "",
    size: Tuple[int, int] = PORTRAIT_SIZE,
) -> Image.Image:
    canvas = Image.new("RGBA", size, (0, 0, 0, 0))
    layers = [(base_path, (0, 0)), (face_path, offset), (mouth_path, offset)]
    for path, pos in layers:
        if not path:
            continue
        try:
            img = loader(path)
        except Exception as exc:
            raise ComposeError(f"Failed to load layer {path}: {exc}") from exc
        canvas = draw_layer(canvas, img, pos)
    return canvas


def center_on_canvas(img: Image.Image, size: Tuple[int, int] = PORTRAIT_SIZE) -> Image.Image:
    out = Image.new("RGBA", size, (0, 0, 0, 0))
    x = (size[0] - img.width) // 2
    y = (size[1] - img.height) // 2
    out.paste(img.convert("RGBA"), (x, y))
    return out


def to_png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class PortraitComposer:
    """
    Renders the live selection. A render requested while another is in
    progress is dropped, not queued.
    """

    def __init__(self, loader: ImageLoader, size: Tuple[int, int] = PORTRAIT_SIZE) -> None:
        self.loader = loader
        self.size = size
        self.drawing = False
        self.last_render: Optional[Image.Image] = None

    def render(self, selection: PortraitSelection) -> Optional[Image.Image]:
        if self.drawing:
            return None
        if not selection.base_path:
            return None
        self.drawing = True
        try:
            img = compose_layers(
                self.loader,
                selection.base_path,
                selection.offset,
                selection.face_path,
                selection.mouth_path,
                self.size,
            )
        finally:
            self.drawing = False
        self.last_render = img
        return img

    def preview(self, selection: PortraitSelection) -> Optional[Image.Image]:
        img = self.render(selection)
        if img is None:
            return None
        return center_on_canvas(img, self.size)

    def contact_sheet(
        self,
        base_path: str,
        offset: Tuple[int, int],
        emotions: Iterable[Emotion],
        thumb: int = SHEET_THUMB,
    ) -> Image.Image:
        """One row per emotion, one column per captured frame."""
        rows: List[Tuple[str, List[Image.Image]]] = []
        for emotion in emotions:
            cells = []
            for frame in emotion.frames:
                img = compose_layers(self.loader, base_path, offset, frame.face, frame.mouth, self.size)
                img.thumbnail((thumb, thumb))
                cells.append(img)
            rows.append((emotion.name, cells))

        cell_h = thumb + SHEET_LABEL_HEIGHT
        sheet = Image.new("RGBA", (thumb * len(FRAME_LABELS), max(cell_h * len(rows), 1)), SHEET_BACKGROUND)
        draw = ImageDraw.Draw(sheet)
        for r, (name, cells) in enumerate(rows):
            top = r * cell_h
            for c, img in enumerate(cells):
                left = c * thumb
                draw.text((left + 4, top + 4), f"{name}: {FRAME_LABELS[c]}", fill=SHEET_TEXT)
                sheet.alpha_composite(img, (left, top + SHEET_LABEL_HEIGHT))
        return sheet
