"""
HTTP service for card previews and PDF generation.
"""

# Standard Library
import datetime
import logging
import sys

# PIP3 modules
import flask
import werkzeug.exceptions

# local repo modules
import material_cards as mc
import material_cards.config
import material_cards.errors
import material_cards.images
import material_cards.lifecycle
import material_cards.markup
import material_cards.pipeline
import material_cards.render


ServerSettings = mc.config.ServerSettings
ArtifactLifecycleManager = mc.lifecycle.ArtifactLifecycleManager
RenderMode = mc.pipeline.RenderMode
sanitize_filename = mc.pipeline.sanitize_filename

NOT_FOUND_MESSAGE = "File not found."
INTERNAL_ERROR_MESSAGE = "Internal server error."
MAX_CONTENT_LENGTH = 10 * 1024 * 1024

logger = logging.getLogger(__name__)


#============================================
def error_response(message: str, status_code: int) -> flask.Response:
	"""
	Build a JSON error response.

	Args:
		message: Message for the client.
		status_code: HTTP status.

	Returns:
		Flask response.
	"""
	response = flask.jsonify({"status": "error", "message": message})
	response.status_code = status_code
	return response


#============================================
def resolve_base_url(settings: ServerSettings) -> str:
	"""
	Resolve the public base URL for links.

	Args:
		settings: Server settings.

	Returns:
		Base URL without a trailing slash.
	"""
	if settings.base_url:
		return settings.base_url
	return flask.request.host_url.rstrip("/")


#============================================
def artifact_path_for(settings: ServerSettings, file_id: str):
	"""
	Map a client supplied id to an existing artifact path.

	Args:
		settings: Server settings.
		file_id: Artifact id, with or without the .pdf suffix.

	Returns:
		Tuple of (file name, path).

	Raises:
		NotFoundError: When the artifact does not exist.
	"""
	if file_id.lower().endswith(".pdf"):
		file_id = file_id[:-4]
	file_name = f"{sanitize_filename(file_id)}.pdf"
	path = settings.cards_dir / file_name
	if not path.is_file():
		raise mc.errors.NotFoundError(file_name)
	return (file_name, path)


#============================================
def register_error_handlers(app: flask.Flask) -> None:
	"""
	Map pipeline errors to HTTP responses.

	Args:
		app: Flask application.
	"""

	@app.errorhandler(mc.errors.ValidationError)
	def handle_validation_error(error):
		return error_response(str(error), 400)

	@app.errorhandler(mc.errors.NotFoundError)
	def handle_not_found(error):
		return error_response(NOT_FOUND_MESSAGE, 404)

	@app.errorhandler(mc.errors.RenderError)
	def handle_render_error(error):
		logger.error("[error] %s", error)
		return error_response(str(error), 500)

	@app.errorhandler(werkzeug.exceptions.HTTPException)
	def handle_http_error(error):
		return error_response(error.description or error.name, error.code or 500)

	@app.errorhandler(Exception)
	def handle_unexpected(error):
		logger.exception("[error] unhandled request error")
		return error_response(INTERNAL_ERROR_MESSAGE, 500)


#============================================
def create_app(
	settings: ServerSettings | None = None,
	lifecycle: ArtifactLifecycleManager | None = None,
	fetcher=None,
	rasterizer=None,
) -> flask.Flask:
	"""
	Build the Flask application.

	Args:
		settings: Server settings, loaded from the environment when None.
		lifecycle: Lifecycle manager, created for settings.cards_dir when None.
		fetcher: Image fetcher override.
		rasterizer: PDF rasterizer override.

	Returns:
		Flask application.
	"""
	if settings is None:
		settings = mc.config.load_server_settings()
	if lifecycle is None:
		lifecycle = ArtifactLifecycleManager(settings.cards_dir, settings.retention_seconds)
	if fetcher is None:
		fetcher = mc.images.fetch_image
	if rasterizer is None:
		rasterizer = mc.render.render_document_pdf

	settings.cards_dir.mkdir(parents=True, exist_ok=True)

	app = flask.Flask(__name__)
	app.config["MAX_CONTENT_LENGTH"] = MAX_CONTENT_LENGTH
	app.extensions["card_lifecycle"] = lifecycle
	register_error_handlers(app)

	@app.get("/")
	def index():
		return flask.jsonify({
			"status": "ok",
			"service": mc.config.SERVICE_NAME,
			"version": mc.config.SERVICE_VERSION,
			"endpoints": {
				"health": "/health",
				"preview": "POST /preview",
				"generatePdf": "POST /gerar-pdf",
				"view": "GET /view/:fileId",
				"files": "GET /files/:fileName",
			},
		})

	@app.get("/health")
	def health():
		timestamp = datetime.datetime.now(datetime.timezone.utc).isoformat()
		return flask.jsonify({"status": "ok", "timestamp": timestamp})

	@app.post("/preview")
	def preview():
		payload = flask.request.get_json(silent=True)
		document = mc.pipeline.prepare_document(payload, RenderMode.INTERACTIVE, fetcher=fetcher)
		content = mc.markup.document_to_html(document)
		return flask.Response(content, mimetype="text/html")

	@app.post("/gerar-pdf")
	def generate_pdf():
		payload = flask.request.get_json(silent=True)
		artifact = mc.pipeline.generate_pdf_artifact(
			payload,
			settings.cards_dir,
			lifecycle,
			fetcher=fetcher,
			rasterizer=rasterizer,
			timeout=settings.render_timeout,
		)
		base_url = resolve_base_url(settings)
		viewer_id = artifact.name[:-len(".pdf")]
		download_url = f"{base_url}/files/{artifact.name}"
		viewer_url = f"{base_url}/view/{viewer_id}"
		logger.info("[/gerar-pdf] %s -> %s", artifact.path, download_url)
		response = flask.jsonify({
			"status": "ok",
			"downloadUrl": download_url,
			"viewerUrl": viewer_url,
		})
		response.status_code = 201
		return response

	@app.get("/view/<file_id>")
	def view(file_id: str):
		file_name, _path = artifact_path_for(settings, file_id)
		download_url = f"{resolve_base_url(settings)}/files/{file_name}"
		content = mc.markup.viewer_page_html(download_url)
		return flask.Response(content, mimetype="text/html")

	@app.get("/files/<file_name>")
	def files(file_name: str):
		safe_name, _path = artifact_path_for(settings, file_name)
		return flask.send_from_directory(
			settings.cards_dir,
			safe_name,
			mimetype="application/pdf",
			max_age=3600,
		)

	return app


#============================================
def main() -> None:
	"""
	Run the HTTP service.
	"""
	settings = mc.config.load_server_settings()
	logging.basicConfig(
		level=settings.log_level,
		format="%(asctime)s %(levelname)s %(name)s: %(message)s",
	)
	logger.info("Server configuration:")
	logger.info("  PORT: %s", settings.port)
	logger.info("  DATA_DIR: %s", settings.data_dir)
	logger.info("  CARDS_DIR: %s", settings.cards_dir)
	logger.info("  BASE_URL: %s", settings.base_url or "not set")

	try:
		settings.cards_dir.mkdir(parents=True, exist_ok=True)
	except OSError as error:
		logger.error("Failed to prepare directories: %s", error)
		sys.exit(1)

	lifecycle = ArtifactLifecycleManager(settings.cards_dir, settings.retention_seconds)
	lifecycle.sweep_orphans()
	app = create_app(settings, lifecycle)
	try:
		app.run(host=settings.host, port=settings.port, threaded=True)
	except OSError as error:
		# port already bound or not permitted
		logger.error("Server failed to start on port %s: %s", settings.port, error)
		sys.exit(1)
	finally:
		lifecycle.shutdown()


if __name__ == "__main__":
	main()
