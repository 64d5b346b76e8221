"""
Authoring session: catalog entries, the active character, the live part
selection and the emotion model, owned together instead of as globals.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from PIL import Image

from compose_portrait import ComposeError, PortraitComposer
from emotions import Emotion, EmotionModel, Frame, PortraitSelection
from portrait_catalog import (
    DEFAULT_LOCALE,
    CatalogClient,
    CatalogError,
    CharacterEntry,
    PartManifest,
    strip_relative_prefix,
)
from renpy_script import ScriptCharacter, generate_script, script_filename


class PortraitSession:
    def __init__(self, client: CatalogClient, locale: str = DEFAULT_LOCALE,
                 composer: Optional[PortraitComposer] = None) -> None:
        self.client = client
        self.locale = locale
        self.composer = composer or PortraitComposer(client.load_image)
        self.characters: Dict[str, CharacterEntry] = {}
        self.display_name = ""
        self.manifest: Optional[PartManifest] = None
        self.selection = PortraitSelection()
        self.emotions = EmotionModel()
        self.preview: Optional[Image.Image] = None

    # Catalog

    def load_catalog(self) -> bool:
        try:
            entries = self.client.list_characters()
        except CatalogError as exc:
            print(f"Warning: unable to load character list: {exc}")
            return False
        characters: Dict[str, CharacterEntry] = {}
        for e in entries:
            name = e.display_name(self.locale)
            if name in characters:
                print(f"Warning: duplicate character name '{name}' ({e.character_id}); keeping {characters[name].character_id}")
                continue
            characters[name] = e
        self.characters = characters
        print(f"Loaded {len(self.characters)} characters")
        return True

    def character_names(self) -> List[str]:
        return list(self.characters)

    def find_character(self, display_name: str) -> Optional[CharacterEntry]:
        return self.characters.get(display_name)

    # Character selection

    def reset(self) -> None:
        self.display_name = ""
        self.manifest = None
        self.selection.reset()
        self.emotions.clear()
        self.preview = None

    def select_character(self, display_name: str) -> bool:
        entry = self.find_character(display_name)
        if entry is None:
            # Unknown name only clears the picked parts.
            self.selection.face_path = ""
            self.selection.mouth_path = ""
            self.render()
            return False
        print(f"Loading parts for {entry.character_id}...")
        try:
            manifest = self.client.load_parts(entry.character_id)
        except CatalogError as exc:
            print(f"Warning: unable to load parts for {entry.character_id}: {exc}")
            return False

        # Frames from another character would share the wrong offset.
        self.reset()
        self.display_name = display_name
        self.manifest = manifest
        self.selection.character_id = entry.character_id
        self.selection.base_path = manifest.base_path
        self.selection.offset = manifest.offset
        self.render()
        return True

    @property
    def character_id(self) -> str:
        return self.selection.character_id

    # Part picking

    def _resolve_part(self, ref, parts: List[str], kind: str) -> str:
        if ref is None or ref == "":
            return ""
        if isinstance(ref, bool):
            raise ValueError(f"Invalid {kind} part reference: {ref!r}")
        if isinstance(ref, int):
            if ref < 0 or ref >= len(parts):
                raise ValueError(f"{kind} part index {ref} out of range (0-{len(parts) - 1})")
            return parts[ref]
        return strip_relative_prefix(self.client.relativize(str(ref)))

    def pick_face(self, ref) -> str:
        parts = self.manifest.face_parts if self.manifest else []
        self.selection.face_path = self._resolve_part(ref, parts, "face")
        self.render()
        return self.selection.face_path

    def pick_mouth(self, ref) -> str:
        parts = self.manifest.mouth_parts if self.manifest else []
        self.selection.mouth_path = self._resolve_part(ref, parts, "mouth")
        self.render()
        return self.selection.mouth_path

    def render(self) -> Optional[Image.Image]:
        if not self.selection.base_path:
            return None
        try:
            img = self.composer.preview(self.selection)
        except ComposeError as exc:
            print(f"Warning: {exc}")
            return None
        if img is not None:
            self.preview = img
        return img

    # Emotions

    def add_emotion(self) -> int:
        return self.emotions.add_emotion()

    def remove_emotion(self) -> Optional[Emotion]:
        removed = self.emotions.remove_last()
        if removed is None:
            print("Warning: no emotion to remove")
        return removed

    def rename_emotion(self, handle: int, name: str) -> None:
        self.emotions.rename_emotion(handle, name)

    def capture(self, handle: int, frame_index: int) -> Frame:
        return self.emotions.capture_frame(handle, frame_index, self.selection)

    # Export

    def script_character(self) -> ScriptCharacter:
        return ScriptCharacter(
            character_id=self.selection.character_id,
            display_name=self.display_name,
            base_path=self.selection.base_path,
            offset=self.selection.offset,
        )

    def export_script(self) -> str:
        return generate_script(self.script_character(), self.emotions)

    def export_filename(self) -> str:
        return script_filename(self.script_character())

    def contact_sheet(self) -> Image.Image:
        return self.composer.contact_sheet(self.selection.base_path, self.selection.offset, self.emotions)
