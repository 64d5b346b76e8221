import io
import os
import sys

import pytest
from PIL import Image

# Modules live at the repository root
ROOT = os.path.dirname(os.path.dirname(__file__))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import portrait_catalog  # noqa: E402

CATALOG_URL = "https://catalog.test/"
HERO_ID = "100001"
VILLAIN_ID = "100002"


def png_bytes(color, size=(8, 8)):
    buf = io.BytesIO()
    Image.new("RGBA", size, color).save(buf, format="PNG")
    return buf.getvalue()


class FakeResponse:
    def __init__(self, status_code=200, payload=None, content=b""):
        self.status_code = status_code
        self.ok = 200 <= status_code < 400
        self._payload = payload
        self.content = content
        self.text = "" if payload is None else repr(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


def default_routes():
    root = CATALOG_URL + "portrait_output/"
    hero = root + HERO_ID + "/"
    return {
        root + "localizedDirData.json": FakeResponse(payload={
            "fileList": {
                HERO_ID: {"en_us": "Hero (Summer)", "ja_jp": "Hero JP"},
                VILLAIN_ID: {"ja_jp": "Villain JP"},
            }
        }),
        hero + "data.json": FakeResponse(payload={
            "partsData": {
                "faceParts": [
                    f"./portrait_output/{HERO_ID}/parts/face_0.png",
                    f"./portrait_output/{HERO_ID}/parts/face_1.png",
                ],
                "mouthParts": [
                    f"./portrait_output/{HERO_ID}/parts/mouth_0.png",
                    f"./portrait_output/{HERO_ID}/parts/mouth_1.png",
                ],
            },
            "offset": {"x": 10, "y": 20},
        }),
        root + f"{VILLAIN_ID}/data.json": FakeResponse(payload={
            "partsData": {"faceParts": [], "mouthParts": []},
            "offset": {"x": 3, "y": 4},
        }),
        hero + f"{HERO_ID}_base.png": FakeResponse(content=png_bytes((0, 0, 255, 255), (64, 64))),
        root + f"{VILLAIN_ID}/{VILLAIN_ID}_base.png": FakeResponse(content=png_bytes((0, 0, 0, 255), (32, 32))),
        hero + "parts/face_0.png": FakeResponse(content=png_bytes((255, 0, 0, 255))),
        hero + "parts/face_1.png": FakeResponse(content=png_bytes((0, 255, 0, 255))),
        hero + "parts/mouth_0.png": FakeResponse(content=png_bytes((255, 255, 0, 255), (4, 4))),
        hero + "parts/mouth_1.png": FakeResponse(content=png_bytes((255, 0, 255, 255), (4, 4))),
    }


@pytest.fixture
def routes():
    return default_routes()


@pytest.fixture
def fake_http(monkeypatch, routes):
    calls = []

    def fake_get(url, timeout=None):
        calls.append(url)
        resp = routes.get(url)
        if isinstance(resp, Exception):
            raise resp
        if resp is None:
            return FakeResponse(status_code=404)
        return resp

    monkeypatch.setattr(portrait_catalog.requests, "get", fake_get)
    return calls


@pytest.fixture
def client(fake_http):
    return portrait_catalog.CatalogClient(CATALOG_URL)
