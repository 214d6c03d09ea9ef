"""
Fetch remote logo and QR images.
"""

# Standard Library
import concurrent.futures
import io
import logging
import typing

# PIP3 modules
import PIL.Image
import requests

# local repo modules
import material_cards as mc
import material_cards.config
import material_cards.errors


ImageData = mc.config.ImageData
Material = mc.config.Material
ResolvedMaterial = mc.config.ResolvedMaterial
ImageFetchError = mc.errors.ImageFetchError

IMAGE_FETCH_TIMEOUT_SECONDS = mc.config.IMAGE_FETCH_TIMEOUT_SECONDS
IMAGE_FETCH_WORKERS = mc.config.IMAGE_FETCH_WORKERS
DEFAULT_IMAGE_MIME = mc.config.DEFAULT_IMAGE_MIME

Fetcher = typing.Callable[[str | None], ImageData | None]

logger = logging.getLogger(__name__)


#============================================
def download_image(url: str, timeout: float = IMAGE_FETCH_TIMEOUT_SECONDS) -> ImageData:
	"""
	Download an image and check that it decodes.

	Args:
		url: Image URL.
		timeout: Request timeout in seconds.

	Returns:
		ImageData.

	Raises:
		ImageFetchError: On network, HTTP or decode failure.
	"""
	try:
		response = requests.get(url, timeout=timeout)
		response.raise_for_status()
	except requests.exceptions.RequestException as error:
		raise ImageFetchError(f"Failed to fetch {url}: {error}") from error

	content = response.content
	try:
		image = PIL.Image.open(io.BytesIO(content))
		image.verify()
	except (OSError, SyntaxError, ValueError) as error:
		raise ImageFetchError(f"Not a readable image at {url}: {error}") from error

	mime_type = response.headers.get("content-type") or DEFAULT_IMAGE_MIME
	mime_type = mime_type.split(";")[0].strip()
	if not mime_type.startswith("image/"):
		mime_type = PIL.Image.MIME.get(image.format or "", DEFAULT_IMAGE_MIME)
	return ImageData(content=content, mime_type=mime_type)


#============================================
def fetch_image(url: str | None, timeout: float = IMAGE_FETCH_TIMEOUT_SECONDS) -> ImageData | None:
	"""
	Fetch an image, degrading to None on any failure.

	Args:
		url: Image URL, may be empty.
		timeout: Request timeout in seconds.

	Returns:
		ImageData, or None when the URL is empty or the fetch failed.
	"""
	if not url:
		return None
	try:
		return download_image(url, timeout=timeout)
	except ImageFetchError as error:
		logger.warning("Image unavailable: %s", error)
		return None


#============================================
def resolve_images(
	logo_url: str | None,
	materials: typing.Sequence[Material],
	fetcher: Fetcher = fetch_image,
	max_workers: int = IMAGE_FETCH_WORKERS,
) -> tuple[ImageData | None, list[ResolvedMaterial]]:
	"""
	Resolve the logo and every QR image concurrently.

	Args:
		logo_url: Optional logo URL.
		materials: Materials in print order.
		fetcher: Callable returning ImageData or None for a URL.
		max_workers: Thread pool size.

	Returns:
		Tuple of (logo, resolved materials in input order).
	"""
	with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
		logo_future = executor.submit(safe_fetch, fetcher, logo_url)
		qr_futures = [executor.submit(safe_fetch, fetcher, material.qr_url) for material in materials]
		logo = logo_future.result()
		resolved = [
			ResolvedMaterial(material=material, qr_image=future.result())
			for material, future in zip(materials, qr_futures)
		]
	unavailable = sum(1 for item in resolved if item.material.qr_url and item.qr_image is None)
	if unavailable:
		logger.warning("QR images unavailable: %d of %d", unavailable, len(resolved))
	return (logo, resolved)


#============================================
def safe_fetch(fetcher: Fetcher, url: str | None) -> ImageData | None:
	"""
	Run a fetcher so one failure never affects sibling fetches.

	Args:
		fetcher: Image fetcher.
		url: Image URL.

	Returns:
		ImageData or None.
	"""
	if not url:
		return None
	try:
		return fetcher(url)
	except Exception:
		logger.exception("Image fetcher failed for %s", url)
		return None
