"""
Site Content API - Pytest Configuration & Shared Fixtures

Provides reusable fixtures for:
- An application wired to a temporary database and uploads directory
- A TestClient that runs the application lifespan
- Small valid image payloads (PNG / JPEG / GIF headers)
- A complete multipart submission
"""

from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient

from src.main import create_app

# ---------------------------------------------------------------------------
# Sample image bytes (headers only — content is never decoded)
# ---------------------------------------------------------------------------
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 32
GIF_BYTES = b"GIF89a" + b"\x00" * 32


def image_part(
    name: str = "slide.png", data: bytes = PNG_BYTES, media_type: str = "image/png"
) -> Tuple[str, Tuple[str, bytes, str]]:
    """Build one ``files=`` entry for the ``images`` field."""
    return ("images", (name, data, media_type))


# ---------------------------------------------------------------------------
# Application fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def uploads_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "content.db"


@pytest.fixture
def app(db_path: Path, uploads_dir: Path):
    return create_app(db_path=db_path, uploads_dir=uploads_dir)


@pytest.fixture
def client(app):
    """TestClient with the lifespan running (store connected)."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def store(client, app):
    """The connected content store behind ``client``."""
    return app.state.store


# ---------------------------------------------------------------------------
# Submission fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_form() -> Dict[str, Any]:
    """A complete multipart submission (text fields only)."""
    return {
        "palpitesTitle": "Palpites do Dia",
        "resultadosTitle": "Últimos Resultados",
        "whatsappNumber": "5511999999999",
        "youtubeLink": "https://youtube.com/@exemplo",
        "slideTitles": ["Bem-vindo", "Promoção"],
        "slideDescriptions": ["Primeiro slide", "Segundo slide"],
        "palpitesDias": ["Segunda", "Terça"],
        "palpitesNumeros": ['["12", "34"]', '["56"]'],
        "resultadosDatas": ["2024-05-01"],
        "resultadosNumeros": ['["1234", "5678"]'],
        "resultadosAnimais": ["Leão"],
        "resultadosPremiacoes": ["R$ 1.000"],
        "featureTitles": ["Rápido", "Seguro"],
        "featureDescriptions": ["Resultados na hora", "Dados protegidos"],
    }


@pytest.fixture
def two_images() -> List[Tuple[str, Tuple[str, bytes, str]]]:
    return [
        image_part("first.png", PNG_BYTES, "image/png"),
        image_part("second.jpg", JPEG_BYTES, "image/jpeg"),
    ]
