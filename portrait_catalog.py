"""Read character lists and part manifests from the portrait catalog service."""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import requests
from PIL import Image

DEFAULT_CATALOG_URL = "https://dlportraits.space/"
CATALOG_ROOT = "portrait_output/"
DEFAULT_LOCALE = "en_us"
DEFAULT_TIMEOUT = 30.0


class CatalogError(Exception):
    pass


@dataclass
class CharacterEntry:
    character_id: str
    names: Dict[str, str]

    def display_name(self, locale: str = DEFAULT_LOCALE) -> str:
        if locale in self.names:
            return self.names[locale]
        for name in self.names.values():
            return name
        return self.character_id


@dataclass
class PartManifest:
    character_id: str
    base_path: str
    offset: Tuple[int, int]
    face_parts: List[str] = field(default_factory=list)
    mouth_parts: List[str] = field(default_factory=list)


def normalize_base_url(url: str) -> str:
    return url if url.endswith("/") else url + "/"


def strip_relative_prefix(path: str) -> str:
    # Manifests list parts as "./portrait_output/..."
    return path[2:] if path.startswith("./") else path


def base_asset_path(character_id: str) -> str:
    return f"{CATALOG_ROOT}{character_id}/{character_id}_base.png"


class CatalogClient:
    def __init__(self, base_url: str = DEFAULT_CATALOG_URL, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.base_url = normalize_base_url(base_url)
        self.timeout = timeout

    def resolve(self, relative_path: str) -> str:
        return self.base_url + strip_relative_prefix(relative_path)

    def relativize(self, url: str) -> str:
        if url.startswith(self.base_url):
            return url[len(self.base_url):]
        return url

    def fetch_json(self, relative_path: str) -> Dict[str, Any]:
        url = self.resolve(relative_path)
        try:
            resp = requests.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise CatalogError(f"Request failed for {url}: {exc}") from exc
        if not resp.ok:
            raise CatalogError(f"Catalog error {resp.status_code} for {url}: {resp.text}")
        try:
            data = resp.json()
        except ValueError as exc:
            raise CatalogError(f"Invalid JSON from {url}: {exc}") from exc
        if not isinstance(data, dict):
            raise CatalogError(f"Expected a JSON object from {url}")
        return data

    def fetch_bytes(self, relative_path: str) -> bytes:
        url = self.resolve(relative_path)
        try:
            resp = requests.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise CatalogError(f"Request failed for {url}: {exc}") from exc
        if not resp.ok:
            raise CatalogError(f"Catalog error {resp.status_code} for {url}")
        return resp.content

    def load_image(self, relative_path: str) -> Image.Image:
        data = self.fetch_bytes(relative_path)
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except OSError as exc:
            raise CatalogError(f"Unable to decode image {relative_path}: {exc}") from exc
        return img.convert("RGBA")

    def list_characters(self) -> List[CharacterEntry]:
        data = self.fetch_json(CATALOG_ROOT + "localizedDirData.json")
        file_list = data.get("fileList")
        if not isinstance(file_list, dict):
            raise CatalogError("Catalog index is missing fileList")
        entries: List[CharacterEntry] = []
        for char_id, names in file_list.items():
            if not isinstance(names, dict):
                continue
            entries.append(CharacterEntry(character_id=char_id, names={k: str(v) for k, v in names.items()}))
        return entries

    def load_parts(self, character_id: str) -> PartManifest:
        data = self.fetch_json(f"{CATALOG_ROOT}{character_id}/data.json")
        parts = data.get("partsData")
        offset = data.get("offset")
        if not isinstance(parts, dict) or not isinstance(offset, dict):
            raise CatalogError(f"Manifest for {character_id} is missing partsData or offset")
        try:
            x, y = int(offset["x"]), int(offset["y"])
        except (KeyError, TypeError, ValueError) as exc:
            raise CatalogError(f"Manifest for {character_id} has a bad offset: {offset}") from exc
        return PartManifest(
            character_id=character_id,
            base_path=base_asset_path(character_id),
            offset=(x, y),
            face_parts=[strip_relative_prefix(p) for p in parts.get("faceParts", [])],
            mouth_parts=[strip_relative_prefix(p) for p in parts.get("mouthParts", [])],
        )
