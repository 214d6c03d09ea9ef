"""
Shared configuration, constants and data model.
"""

# Standard Library
import base64
import dataclasses
import datetime
import os
import pathlib


MM_PER_INCH = 25.4
POINTS_PER_INCH = 72.0

DEFAULT_PAGE_FORMAT = "A4"

DEFAULT_ROTATE_CARD = 0.0
DEFAULT_CARD_PADDING = 8.0
DEFAULT_CARD_MARGIN_TOP = 4.0
DEFAULT_CARD_MARGIN_BOTTOM = 4.0
DEFAULT_COMPANY_NAME = "Appsculpt"
DEFAULT_COMPANY_FONT = 3.5
DEFAULT_NAME_FONT = 4.0
DEFAULT_CODE_FONT = 3.2
DEFAULT_QR_SIZE = 32.0

REQUIRED_LAYOUT_FIELDS = (
	"cols",
	"rows",
	"marginTop",
	"marginBottom",
	"marginLeft",
	"marginRight",
	"gapCol",
	"gapRow",
	"cardWidth",
	"cardHeight",
)

ELLIPSIS = "…"

# upper bound on grid cells per page; every page is padded to this size
MAX_GRID_CELLS = 400

RETENTION_SECONDS = 10 * 60
RENDER_TIMEOUT_SECONDS = 30.0
IMAGE_FETCH_TIMEOUT_SECONDS = 10.0
IMAGE_FETCH_WORKERS = 8
DEFAULT_IMAGE_MIME = "image/png"

PARTIAL_FILE_PREFIX = ".partial_"
PARTIAL_FILE_SUFFIX = ".tmp"

# card drawing, all lengths in mm
HEADER_HEIGHT = 24.0
HEADER_GAP = 4.0
LOGO_MAX_HEIGHT = 22.0
LOGO_MAX_WIDTH = 80.0
CARD_BORDER_WIDTH = 0.6
CARD_CORNER_RADIUS = 1.5
CARD_STACK_GAP = 3.0
COMPANY_NAME_GAP = 2.0
QR_CORNER_RADIUS = 1.0
PLACEHOLDER_FONT = 3.0

DEFAULT_FONT_REGULAR = "Helvetica"
DEFAULT_FONT_BOLD = "Helvetica-Bold"

COLOR_TEXT = "#0F172A"
COLOR_CODE = "#475569"
COLOR_BORDER = "#1F2937"
COLOR_QR_BACKGROUND = "#F1F5F9"
COLOR_MUTED = "#9CA3AF"
COLOR_PLACEHOLDER = "#D1D5DB"

PLACEHOLDER_LABEL = "Vago"
QR_UNAVAILABLE_LABEL = "QR indisponível"

SERVICE_NAME = "Servidor de Cards PDF"
SERVICE_VERSION = "1.0.0"
DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
REPO_ROOT = pathlib.Path(__file__).resolve().parent.parent


@dataclasses.dataclass(frozen=True)
class LayoutConfig:
	cols: int
	rows: int
	margin_top: float
	margin_bottom: float
	margin_left: float
	margin_right: float
	gap_col: float
	gap_row: float
	card_width: float
	card_height: float
	rotate_card: float = DEFAULT_ROTATE_CARD
	card_padding: float = DEFAULT_CARD_PADDING
	card_margin_top: float = DEFAULT_CARD_MARGIN_TOP
	card_margin_bottom: float = DEFAULT_CARD_MARGIN_BOTTOM
	company_name: str = DEFAULT_COMPANY_NAME
	company_font: float = DEFAULT_COMPANY_FONT
	name_font: float = DEFAULT_NAME_FONT
	code_font: float = DEFAULT_CODE_FONT
	max_chars_name: int | None = None
	max_chars_code: int | None = None
	qr_size: float = DEFAULT_QR_SIZE

	@property
	def cells_per_page(self) -> int:
		return self.cols * self.rows


@dataclasses.dataclass(frozen=True)
class Material:
	name: str
	code: str
	qr_url: str | None = None


@dataclasses.dataclass(frozen=True)
class ImageData:
	content: bytes
	mime_type: str = DEFAULT_IMAGE_MIME

	def data_url(self) -> str:
		encoded = base64.b64encode(self.content).decode("ascii")
		return f"data:{self.mime_type};base64,{encoded}"


@dataclasses.dataclass(frozen=True)
class ResolvedMaterial:
	material: Material
	qr_image: ImageData | None = None


@dataclasses.dataclass(frozen=True)
class CardRequest:
	logo_url: str | None
	layout: LayoutConfig
	materials: tuple[Material, ...]


@dataclasses.dataclass(frozen=True)
class Artifact:
	name: str
	path: pathlib.Path
	created_at: datetime.datetime


@dataclasses.dataclass
class ServerSettings:
	port: int
	host: str
	data_dir: pathlib.Path
	base_url: str | None
	log_level: str
	retention_seconds: float = RETENTION_SECONDS
	render_timeout: float = RENDER_TIMEOUT_SECONDS

	@property
	def cards_dir(self) -> pathlib.Path:
		return self.data_dir / "cards"


#============================================
def mm_to_points(value: float) -> float:
	"""
	Convert millimeters to points.

	Args:
		value: Millimeters value.

	Returns:
		Points value.
	"""
	return value * POINTS_PER_INCH / MM_PER_INCH


#============================================
def load_server_settings(environ: dict | None = None) -> ServerSettings:
	"""
	Build server settings from environment variables.

	Args:
		environ: Mapping to read from, defaults to os.environ.

	Returns:
		ServerSettings.
	"""
	if environ is None:
		environ = os.environ
	base_url = environ.get("BASE_URL") or None
	if base_url is None and environ.get("RAILWAY_STATIC_URL"):
		base_url = f"https://{environ['RAILWAY_STATIC_URL']}"
	if base_url is not None:
		base_url = base_url.rstrip("/")
	data_dir = environ.get("DATA_DIR")
	if data_dir:
		data_path = pathlib.Path(data_dir)
	else:
		data_path = REPO_ROOT / "data"
	return ServerSettings(
		port=int(environ.get("PORT", DEFAULT_PORT)),
		host=environ.get("HOST", DEFAULT_HOST),
		data_dir=data_path,
		base_url=base_url,
		log_level=environ.get("LOG_LEVEL", "INFO").upper(),
	)
