import threading

import requests

import material_cards.config
import material_cards.images


ImageData = material_cards.config.ImageData
Material = material_cards.config.Material


class FakeResponse:
	def __init__(self, content: bytes, status_code: int = 200, content_type: str | None = "image/png"):
		self.content = content
		self.status_code = status_code
		self.headers = {}
		if content_type is not None:
			self.headers["content-type"] = content_type

	def raise_for_status(self) -> None:
		if self.status_code >= 400:
			raise requests.exceptions.HTTPError(f"{self.status_code} error")


#============================================
def test_fetch_image_success(monkeypatch, png_bytes: bytes) -> None:
	"""
	A decodable response becomes ImageData with its mime type.
	"""
	calls = []

	def fake_get(url, timeout):
		calls.append((url, timeout))
		return FakeResponse(png_bytes, content_type="image/png; charset=binary")

	monkeypatch.setattr(requests, "get", fake_get)
	image = material_cards.images.fetch_image("https://qr.example/1.png")
	assert image == ImageData(content=png_bytes, mime_type="image/png")
	assert image.data_url().startswith("data:image/png;base64,")
	assert calls == [("https://qr.example/1.png", material_cards.config.IMAGE_FETCH_TIMEOUT_SECONDS)]


#============================================
def test_fetch_image_guesses_mime_from_content(monkeypatch, png_bytes: bytes) -> None:
	"""
	A missing or non-image content type falls back to the decoded format.
	"""
	monkeypatch.setattr(requests, "get", lambda url, timeout: FakeResponse(png_bytes, content_type="application/octet-stream"))
	image = material_cards.images.fetch_image("https://qr.example/1")
	assert image.mime_type == "image/png"


#============================================
def test_fetch_image_failures_degrade(monkeypatch) -> None:
	"""
	HTTP errors, network errors and undecodable bytes all yield None.
	"""
	monkeypatch.setattr(requests, "get", lambda url, timeout: FakeResponse(b"", status_code=404))
	assert material_cards.images.fetch_image("https://qr.example/missing.png") is None

	def raise_connection(url, timeout):
		raise requests.exceptions.ConnectionError("refused")

	monkeypatch.setattr(requests, "get", raise_connection)
	assert material_cards.images.fetch_image("https://qr.example/down.png") is None

	monkeypatch.setattr(requests, "get", lambda url, timeout: FakeResponse(b"<html>not an image</html>", content_type="text/html"))
	assert material_cards.images.fetch_image("https://qr.example/page") is None


#============================================
def test_fetch_image_empty_url_skips_network(monkeypatch) -> None:
	"""
	Empty URLs never issue a request.
	"""
	def fail_get(url, timeout):
		raise AssertionError("requests.get should not be called")

	monkeypatch.setattr(requests, "get", fail_get)
	assert material_cards.images.fetch_image(None) is None
	assert material_cards.images.fetch_image("") is None


#============================================
def test_resolve_images_keeps_order_and_isolates_failures(png_bytes: bytes) -> None:
	"""
	One failing fetch yields a placeholder without affecting siblings.
	"""
	materials = [
		Material(name="a", code="1", qr_url="https://qr.example/a"),
		Material(name="b", code="2", qr_url="https://qr.example/broken"),
		Material(name="c", code="3", qr_url=None),
		Material(name="d", code="4", qr_url="https://qr.example/d"),
	]
	fetched = []
	lock = threading.Lock()

	def fetcher(url):
		with lock:
			fetched.append(url)
		if url.endswith("broken"):
			raise RuntimeError("boom")
		return ImageData(content=url.encode("utf-8"))

	logo, resolved = material_cards.images.resolve_images("https://logo.example/logo", materials, fetcher=fetcher)
	assert logo == ImageData(content=b"https://logo.example/logo")
	assert [item.material for item in resolved] == materials
	assert resolved[0].qr_image == ImageData(content=b"https://qr.example/a")
	assert resolved[1].qr_image is None
	assert resolved[2].qr_image is None
	assert resolved[3].qr_image == ImageData(content=b"https://qr.example/d")
	assert sorted(fetched) == sorted([
		"https://logo.example/logo",
		"https://qr.example/a",
		"https://qr.example/broken",
		"https://qr.example/d",
	])


#============================================
def test_resolve_images_runs_concurrently() -> None:
	"""
	All fetches are in flight at the same time.
	"""
	materials = [Material(name=str(index), code=str(index), qr_url=f"https://qr.example/{index}") for index in range(4)]
	barrier = threading.Barrier(5, timeout=5)

	def fetcher(url):
		# every fetch waits for the other four; a serial resolver would time out
		barrier.wait()
		return None

	logo, resolved = material_cards.images.resolve_images(
		"https://logo.example/logo",
		materials,
		fetcher=fetcher,
		max_workers=8,
	)
	assert logo is None
	assert len(resolved) == 4
	assert not barrier.broken
