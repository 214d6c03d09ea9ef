"""
Grid geometry for card sheets.
"""

# Standard Library
import dataclasses

# PIP3 modules
import reportlab.lib.pagesizes

# local repo modules
import material_cards as mc
import material_cards.config
import material_cards.errors


LayoutConfig = mc.config.LayoutConfig
InvalidLayoutError = mc.errors.InvalidLayoutError

HEADER_HEIGHT = mc.config.HEADER_HEIGHT
HEADER_GAP = mc.config.HEADER_GAP

SWAP_RANGES = ((45.0, 135.0), (225.0, 315.0))
PAGE_FORMATS = {
	"A4": reportlab.lib.pagesizes.A4,
	"LETTER": reportlab.lib.pagesizes.letter,
}


@dataclasses.dataclass(frozen=True)
class GridGeometry:
	cols: int
	rows: int
	cell_width: float
	cell_height: float
	gap_col: float
	gap_row: float
	total_width: float
	total_height: float
	rotation: float
	swapped: bool

	@property
	def cells_per_page(self) -> int:
		return self.cols * self.rows


#============================================
def normalize_rotation(angle: float) -> float:
	"""
	Normalize a rotation angle into [0, 360).

	Args:
		angle: Angle in degrees, any real value.

	Returns:
		Normalized angle.
	"""
	normalized = ((angle % 360.0) + 360.0) % 360.0
	# float modulo can round up to exactly 360 for tiny negative inputs
	if normalized >= 360.0:
		normalized = 0.0
	return normalized


#============================================
def is_axis_swapped(angle: float) -> bool:
	"""
	Check whether a rotated card needs swapped grid axes.

	Args:
		angle: Rotation angle in degrees.

	Returns:
		True when the normalized angle lies in [45, 135] or [225, 315].
	"""
	normalized = normalize_rotation(angle)
	for low, high in SWAP_RANGES:
		if low <= normalized <= high:
			return True
	return False


#============================================
def compute_grid_geometry(
	card_width: float,
	card_height: float,
	rotate: float,
	cols: int,
	rows: int,
	gap_col: float,
	gap_row: float,
) -> GridGeometry:
	"""
	Compute cell and grid extents for a card layout.

	Args:
		card_width: Card width in mm.
		card_height: Card height in mm.
		rotate: Card rotation in degrees.
		cols: Grid columns.
		rows: Grid rows.
		gap_col: Gap between columns in mm.
		gap_row: Gap between rows in mm.

	Returns:
		GridGeometry.
	"""
	if cols * rows <= 0:
		raise InvalidLayoutError("Invalid layout: cols * rows must be greater than zero.")
	rotation = normalize_rotation(rotate)
	swapped = is_axis_swapped(rotation)
	cell_width = card_height if swapped else card_width
	cell_height = card_width if swapped else card_height
	total_width = cols * cell_width + (cols - 1) * gap_col
	total_height = rows * cell_height + (rows - 1) * gap_row
	return GridGeometry(
		cols=cols,
		rows=rows,
		cell_width=cell_width,
		cell_height=cell_height,
		gap_col=gap_col,
		gap_row=gap_row,
		total_width=total_width,
		total_height=total_height,
		rotation=rotation,
		swapped=swapped,
	)


#============================================
def geometry_for_layout(layout: LayoutConfig) -> GridGeometry:
	"""
	Compute grid geometry from a layout config.

	Args:
		layout: Layout configuration.

	Returns:
		GridGeometry.
	"""
	return compute_grid_geometry(
		layout.card_width,
		layout.card_height,
		layout.rotate_card,
		layout.cols,
		layout.rows,
		layout.gap_col,
		layout.gap_row,
	)


#============================================
def compute_grid_origin(
	layout: LayoutConfig,
	geometry: GridGeometry,
	page_width: float,
	has_header: bool,
) -> tuple[float, float]:
	"""
	Compute the top-left corner of the grid on a page.

	The grid is centered horizontally between the side margins and sits
	below the logo header when the page has one.

	Args:
		layout: Layout configuration.
		geometry: Grid geometry.
		page_width: Page width in mm.
		has_header: Whether a logo header precedes the grid.

	Returns:
		Tuple of (left, top) in mm from the page's top-left corner.
	"""
	content_width = page_width - layout.margin_left - layout.margin_right
	offset = (content_width - geometry.total_width) / 2.0
	left = layout.margin_left + max(0.0, offset)
	top = layout.margin_top
	if has_header:
		top += HEADER_HEIGHT + HEADER_GAP
	return (left, top)


#============================================
def compute_cell_origin(
	geometry: GridGeometry,
	slot: int,
	grid_left: float,
	grid_top: float,
) -> tuple[float, float]:
	"""
	Compute the top-left corner of a grid cell, filled row by row.

	Args:
		geometry: Grid geometry.
		slot: Cell index on the page.
		grid_left: Grid left edge in mm.
		grid_top: Grid top edge in mm.

	Returns:
		Tuple of (x, y) in mm from the page's top-left corner.
	"""
	row = slot // geometry.cols
	col = slot % geometry.cols
	cell_x = grid_left + col * (geometry.cell_width + geometry.gap_col)
	cell_y = grid_top + row * (geometry.cell_height + geometry.gap_row)
	return (cell_x, cell_y)


#============================================
def page_size_points(page_format: str) -> tuple[float, float]:
	"""
	Look up a portrait page size.

	Args:
		page_format: Page format name, like "A4".

	Returns:
		Tuple of (width, height) in points.
	"""
	key = (page_format or mc.config.DEFAULT_PAGE_FORMAT).strip().upper()
	if key not in PAGE_FORMATS:
		raise ValueError(f"Unsupported page format: {page_format}")
	return PAGE_FORMATS[key]


#============================================
def page_size_mm(page_format: str) -> tuple[float, float]:
	"""
	Look up a portrait page size in millimeters.

	Args:
		page_format: Page format name, like "A4".

	Returns:
		Tuple of (width, height) in mm.
	"""
	width, height = page_size_points(page_format)
	scale = mc.config.MM_PER_INCH / mc.config.POINTS_PER_INCH
	return (width * scale, height * scale)
