"""
Render pipeline: validate, resolve images, build, rasterize, persist, register.
"""

# Standard Library
import concurrent.futures
import datetime
import enum
import io
import logging
import os
import pathlib
import re
import tempfile
import typing
import uuid

# PIP3 modules
import pypdf
import pypdf.errors

# local repo modules
import material_cards as mc
import material_cards.config
import material_cards.document
import material_cards.errors
import material_cards.geometry
import material_cards.images
import material_cards.lifecycle
import material_cards.render
import material_cards.validate


Artifact = mc.config.Artifact
Document = mc.document.Document
RenderMode = mc.document.RenderMode
RenderError = mc.errors.RenderError
ArtifactLifecycleManager = mc.lifecycle.ArtifactLifecycleManager
Fetcher = mc.images.Fetcher

Rasterizer = typing.Callable[[Document, str], bytes]

DEFAULT_PAGE_FORMAT = mc.config.DEFAULT_PAGE_FORMAT
RENDER_TIMEOUT_SECONDS = mc.config.RENDER_TIMEOUT_SECONDS
UNSAFE_FILENAME_CHARS = re.compile(r"[^a-z0-9_\-]", re.IGNORECASE)

logger = logging.getLogger(__name__)


class PipelineStage(str, enum.Enum):
	RECEIVED = "RECEIVED"
	VALIDATED = "VALIDATED"
	IMAGES_RESOLVED = "IMAGES_RESOLVED"
	DOCUMENT_BUILT = "DOCUMENT_BUILT"
	RENDERED = "RENDERED"
	PERSISTED = "PERSISTED"
	REGISTERED = "REGISTERED"


#============================================
def sanitize_filename(name: str) -> str:
	"""
	Reduce a name to lowercase [a-z0-9_-] characters.

	Args:
		name: Raw file name or id.

	Returns:
		Sanitized name, other characters replaced by underscores.
	"""
	return UNSAFE_FILENAME_CHARS.sub("_", name).lower()


#============================================
def make_slug(now: datetime.datetime | None = None) -> str:
	"""
	Build a dated, random artifact slug.

	Args:
		now: Timestamp for the date part, defaults to now (UTC).

	Returns:
		Slug like "cards_2024-05-01_1a2b3c4d".
	"""
	if now is None:
		now = datetime.datetime.now(datetime.timezone.utc)
	random_part = uuid.uuid4().hex[:8]
	return f"cards_{now.date().isoformat()}_{random_part}"


#============================================
def artifact_file_name(now: datetime.datetime | None = None) -> str:
	"""
	Build a sanitized PDF file name for a new artifact.

	Args:
		now: Timestamp for the date part.

	Returns:
		File name ending in ".pdf".
	"""
	return f"{sanitize_filename(make_slug(now))}.pdf"


#============================================
def log_stage(stage: PipelineStage, detail: str = "") -> None:
	"""
	Log a pipeline stage transition.

	Args:
		stage: Stage reached.
		detail: Optional detail text.
	"""
	logger.debug("[pipeline] %s %s", stage.value, detail)


#============================================
def prepare_document(
	payload,
	mode: RenderMode = RenderMode.PRINT,
	fetcher: Fetcher = mc.images.fetch_image,
) -> Document:
	"""
	Validate a payload, resolve its images and build the document.

	Validation runs before any image is fetched.

	Args:
		payload: Decoded JSON body.
		mode: Render mode.
		fetcher: Image fetcher.

	Returns:
		Document.
	"""
	log_stage(PipelineStage.RECEIVED)
	request = mc.validate.validate_payload(payload)
	log_stage(PipelineStage.VALIDATED, f"materials={len(request.materials)}")
	# reject a degenerate grid before fetching anything
	mc.geometry.geometry_for_layout(request.layout)

	logo, resolved = mc.images.resolve_images(request.logo_url, request.materials, fetcher=fetcher)
	log_stage(PipelineStage.IMAGES_RESOLVED)

	document = mc.document.build_document(resolved, request.layout, logo=logo, mode=mode)
	log_stage(
		PipelineStage.DOCUMENT_BUILT,
		f"pages={len(document.pages)} placeholders={document.placeholder_count}",
	)
	return document


#============================================
def render_with_timeout(
	document: Document,
	rasterizer: Rasterizer = mc.render.render_document_pdf,
	page_format: str = DEFAULT_PAGE_FORMAT,
	timeout: float = RENDER_TIMEOUT_SECONDS,
) -> bytes:
	"""
	Run the rasterizer on a worker thread with a hard timeout.

	Args:
		document: Card document.
		rasterizer: Callable producing PDF bytes.
		page_format: Page format name.
		timeout: Seconds to wait for the rasterizer.

	Returns:
		PDF bytes.

	Raises:
		RenderError: When the rasterizer fails or times out.
	"""
	executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="rasterizer")
	try:
		future = executor.submit(rasterizer, document, page_format)
		try:
			content = future.result(timeout=timeout)
		except concurrent.futures.TimeoutError as error:
			future.cancel()
			raise RenderError(f"PDF rendering timed out after {timeout:g}s.") from error
		except Exception as error:
			raise RenderError(f"PDF rendering failed: {error}") from error
	finally:
		# a timed out render is abandoned, its bytes are never written
		executor.shutdown(wait=False)
	if not content:
		raise RenderError("PDF rendering produced no output.")
	return content


#============================================
def verify_pdf(content: bytes, expected_pages: int) -> None:
	"""
	Check that rasterizer output parses as a PDF with the expected pages.

	Args:
		content: PDF bytes.
		expected_pages: Number of document pages.

	Raises:
		RenderError: When the bytes do not parse or the page count differs.
	"""
	try:
		reader = pypdf.PdfReader(io.BytesIO(content))
		page_total = len(reader.pages)
	except pypdf.errors.PyPdfError as error:
		raise RenderError(f"PDF rendering produced an unreadable file: {error}") from error
	if page_total != expected_pages:
		raise RenderError(f"PDF has {page_total} pages, expected {expected_pages}.")


#============================================
def persist_artifact(content: bytes, artifact_dir: pathlib.Path, file_name: str) -> pathlib.Path:
	"""
	Write PDF bytes into the artifact directory atomically.

	Args:
		content: PDF bytes.
		artifact_dir: Managed directory.
		file_name: Sanitized file name.

	Returns:
		Final artifact path.
	"""
	artifact_dir.mkdir(parents=True, exist_ok=True)
	final_path = artifact_dir / file_name
	handle, temp_name = tempfile.mkstemp(
		dir=artifact_dir,
		prefix=mc.config.PARTIAL_FILE_PREFIX,
		suffix=mc.config.PARTIAL_FILE_SUFFIX,
	)
	try:
		with os.fdopen(handle, "wb") as output:
			output.write(content)
		os.replace(temp_name, final_path)
	except BaseException:
		if os.path.exists(temp_name):
			os.remove(temp_name)
		raise
	return final_path


#============================================
def generate_pdf_artifact(
	payload,
	artifact_dir: pathlib.Path,
	lifecycle: ArtifactLifecycleManager,
	fetcher: Fetcher = mc.images.fetch_image,
	rasterizer: Rasterizer = mc.render.render_document_pdf,
	page_format: str = DEFAULT_PAGE_FORMAT,
	timeout: float = RENDER_TIMEOUT_SECONDS,
	now: datetime.datetime | None = None,
) -> Artifact:
	"""
	Run the full pipeline and register the artifact for deletion.

	Args:
		payload: Decoded JSON body.
		artifact_dir: Managed directory.
		lifecycle: Lifecycle manager owning the artifact.
		fetcher: Image fetcher.
		rasterizer: Callable producing PDF bytes.
		page_format: Page format name.
		timeout: Rasterizer timeout in seconds.
		now: Creation timestamp, defaults to now (UTC).

	Returns:
		Artifact.
	"""
	document = prepare_document(payload, RenderMode.PRINT, fetcher=fetcher)

	content = render_with_timeout(document, rasterizer, page_format, timeout)
	verify_pdf(content, len(document.pages))
	log_stage(PipelineStage.RENDERED, f"bytes={len(content)}")

	if now is None:
		now = datetime.datetime.now(datetime.timezone.utc)
	file_name = artifact_file_name(now)
	path = persist_artifact(content, pathlib.Path(artifact_dir), file_name)
	log_stage(PipelineStage.PERSISTED, str(path))

	lifecycle.register(file_name)
	log_stage(PipelineStage.REGISTERED, file_name)
	logger.info(
		"PDF generated: %s (%d cards, %d pages)",
		file_name,
		document.card_count,
		len(document.pages),
	)
	return Artifact(name=file_name, path=path, created_at=now)
