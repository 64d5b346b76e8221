#!/usr/bin/env python3
"""Author portrait emotions from a definitions file and write a Ren'Py script."""

from __future__ import annotations

import argparse
import json
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from compose_portrait import ComposeError, to_png_bytes
from portrait_catalog import DEFAULT_CATALOG_URL, DEFAULT_LOCALE, DEFAULT_TIMEOUT, CatalogClient
from portrait_session import PortraitSession


@dataclass
class Config:
    catalog_url: str = DEFAULT_CATALOG_URL
    locale: str = DEFAULT_LOCALE
    timeout: float = DEFAULT_TIMEOUT
    character: Optional[str] = None
    emotions: Optional[str] = None
    out_dir: str = "."
    preview: Optional[str] = None
    sheet: Optional[str] = None
    list_characters: bool = False
    list_parts: bool = False


def load_definitions(path: str) -> List[Dict[str, Any]]:
    if not os.path.isfile(path):
        raise SystemExit(f"Emotion definitions not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise SystemExit(f"Invalid JSON in {path}: {exc}") from exc
    emotions = data.get("emotions") if isinstance(data, dict) else data
    if not isinstance(emotions, list):
        raise SystemExit(f"Expected an 'emotions' list in {path}")
    return emotions


def apply_definitions(session: PortraitSession, definitions: List[Dict[str, Any]]) -> None:
    # Drives the same pick -> capture path an interactive author would.
    for i, entry in enumerate(definitions):
        if not isinstance(entry, dict):
            raise SystemExit(f"Emotion #{i} must be an object")
        handle = session.add_emotion()
        if entry.get("name"):
            session.rename_emotion(handle, str(entry["name"]))
        frames = entry.get("frames", [])
        if not isinstance(frames, list) or len(frames) > 2:
            raise SystemExit(f"Emotion #{i} must have at most two frames")
        for frame_index, frame in enumerate(frames):
            if not isinstance(frame, dict):
                raise SystemExit(f"Emotion #{i} frame {frame_index} must be an object")
            try:
                session.pick_face(frame.get("face"))
                session.pick_mouth(frame.get("mouth"))
            except ValueError as exc:
                raise SystemExit(f"Emotion #{i} frame {frame_index}: {exc}") from exc
            session.capture(handle, frame_index)
        emotion = session.emotions[handle]
        print(f"- {emotion.name} -> {emotion.token} (blink={emotion.blink}, lipflap={emotion.lipflap})")


def write_bytes(path: str, data: bytes) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)
    print(f"Saved {path}")


def run(cfg: Config) -> Optional[str]:
    session = PortraitSession(CatalogClient(cfg.catalog_url, cfg.timeout), locale=cfg.locale)
    if not session.load_catalog():
        raise SystemExit("Character list unavailable.")

    if cfg.list_characters:
        for name in session.character_names():
            print(f"{session.characters[name].character_id}\t{name}")
        return None

    if not cfg.character:
        raise SystemExit("Pass --character (see --list).")
    if not session.select_character(cfg.character):
        raise SystemExit(f"Character not found: {cfg.character}")

    if cfg.list_parts and session.manifest is not None:
        for i, p in enumerate(session.manifest.face_parts):
            print(f"face[{i}] {p}")
        for i, p in enumerate(session.manifest.mouth_parts):
            print(f"mouth[{i}] {p}")
        return None

    if not cfg.emotions:
        raise SystemExit("Pass --emotions with an emotion definitions file.")
    apply_definitions(session, load_definitions(cfg.emotions))
    if len(session.emotions) == 0:
        raise SystemExit("No emotions defined; nothing to export.")

    if cfg.preview and session.preview is not None:
        write_bytes(cfg.preview, to_png_bytes(session.preview))
    if cfg.sheet:
        try:
            write_bytes(cfg.sheet, to_png_bytes(session.contact_sheet()))
        except ComposeError as exc:
            print(f"Warning: contact sheet skipped: {exc}")

    out_path = os.path.join(cfg.out_dir, session.export_filename())
    write_bytes(out_path, session.export_script().encode("utf-8"))
    return out_path


def parse_args(argv: Optional[List[str]] = None) -> Config:
    ap = argparse.ArgumentParser()
    ap.add_argument("--catalog_url", default=os.environ.get("PORTRAIT_CATALOG_URL", Config.catalog_url))
    ap.add_argument("--locale", default=Config.locale, help="Locale key for character display names")
    ap.add_argument("--timeout", type=float, default=Config.timeout, help="HTTP timeout in seconds")
    ap.add_argument("--character", default=None, help="Character display name")
    ap.add_argument("--emotions", default=None, help="JSON file with emotion definitions")
    ap.add_argument("--out_dir", default=Config.out_dir, help="Directory for the .rpy script")
    ap.add_argument("--preview", default=None, help="Write the last composed portrait to this PNG")
    ap.add_argument("--sheet", default=None, help="Write a contact sheet of every emotion frame to this PNG")
    ap.add_argument("--list", dest="list_characters", action="store_true", help="List catalog characters and exit")
    ap.add_argument("--parts", dest="list_parts", action="store_true", help="List face/mouth parts of --character and exit")
    args = ap.parse_args(argv)
    return Config(**vars(args))


def main() -> None:
    run(parse_args())


if __name__ == "__main__":
    main()
