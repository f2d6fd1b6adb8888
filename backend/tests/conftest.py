"""Pytest configuration for autocoder tests."""
import sys
from pathlib import Path

import pytest

# Make the backend package importable without an editable install
backend_path = Path(__file__).parent.parent
if str(backend_path) not in sys.path:
    sys.path.insert(0, str(backend_path))

from fakes import PIXEL_B64  # noqa: E402


@pytest.fixture
def png_attachment():
    from autocoder.schemas.pipeline import Attachment

    return Attachment(data_url=f"data:image/png;base64,{PIXEL_B64}", mime_type="image/png")


@pytest.fixture
def wav_attachment():
    from autocoder.schemas.pipeline import Attachment

    return Attachment(data_url="data:audio/wav;base64,UklGRiQAAABXQVZF", mime_type="audio/wav")
