"""
Pytest configuration for local imports and shared payloads.
"""

# Standard Library
import io
import os
import sys

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()

# PIP3 modules
import PIL.Image
import pytest


#============================================
def build_layout_payload(**overrides) -> dict:
	"""
	Build the 2x2 layout payload used across tests.
	"""
	layout = {
		"cols": 2,
		"rows": 2,
		"cardWidth": 60,
		"cardHeight": 40,
		"gapCol": 5,
		"gapRow": 5,
		"marginTop": 10,
		"marginBottom": 10,
		"marginLeft": 10,
		"marginRight": 10,
	}
	layout.update(overrides)
	return layout


#============================================
def build_payload(count: int = 5, **layout_overrides) -> dict:
	"""
	Build a request payload with numbered materials.
	"""
	materials = [
		{"name": f"Material {index}", "code": f"MAT-{index:03d}", "qr": f"https://qr.example/{index}.png"}
		for index in range(count)
	]
	return {
		"logoUrl": "https://logo.example/logo.png",
		"layout": build_layout_payload(**layout_overrides),
		"materials": materials,
	}


#============================================
def make_png_bytes(width: int = 16, height: int = 16, color: str = "black") -> bytes:
	"""
	Encode a small solid PNG.
	"""
	buffer = io.BytesIO()
	PIL.Image.new("RGB", (width, height), color).save(buffer, format="PNG")
	return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
	return make_png_bytes()


@pytest.fixture
def payload() -> dict:
	return build_payload()


@pytest.fixture
def payload_factory():
	return build_payload


@pytest.fixture
def layout_factory():
	return build_layout_payload
