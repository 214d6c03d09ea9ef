"""
Rasterize card documents to PDF with ReportLab.
"""

# Standard Library
import html
import io
import logging
import pathlib

# PIP3 modules
import PIL.Image
import reportlab.lib.utils
import reportlab.pdfbase.pdfmetrics
import reportlab.pdfgen.canvas

# local repo modules
import material_cards as mc
import material_cards.config
import material_cards.document
import material_cards.geometry


Document = mc.document.Document
PageNode = mc.document.PageNode
CardCell = mc.document.CardCell
ImageData = mc.config.ImageData
LayoutConfig = mc.config.LayoutConfig

mm_to_points = mc.config.mm_to_points

DEFAULT_PAGE_FORMAT = mc.config.DEFAULT_PAGE_FORMAT
DEFAULT_FONT_REGULAR = mc.config.DEFAULT_FONT_REGULAR
DEFAULT_FONT_BOLD = mc.config.DEFAULT_FONT_BOLD
ELLIPSIS = mc.config.ELLIPSIS
LINE_HEIGHT_FACTOR = 1.2

ImageCache = dict[ImageData, reportlab.lib.utils.ImageReader | None]

logger = logging.getLogger(__name__)


#============================================
def parse_hex_color(value: str) -> tuple[float, float, float]:
	"""
	Parse a hex color string into RGB floats.

	Args:
		value: Color string like "#AABBCC".

	Returns:
		Tuple of (r, g, b) in 0.0-1.0 range.
	"""
	if not value or not value.startswith("#") or len(value) != 7:
		return (0.0, 0.0, 0.0)
	red = int(value[1:3], 16) / 255.0
	green = int(value[3:5], 16) / 255.0
	blue = int(value[5:7], 16) / 255.0
	return (red, green, blue)


#============================================
def clip_text_to_width(text: str, font_name: str, font_size: float, max_width: float) -> str:
	"""
	Shorten text with an ellipsis until it fits a width.

	Args:
		text: Text to draw.
		font_name: ReportLab font name.
		font_size: Font size in points.
		max_width: Available width in points.

	Returns:
		Text that fits within max_width.
	"""
	string_width = reportlab.pdfbase.pdfmetrics.stringWidth
	if string_width(text, font_name, font_size) <= max_width:
		return text
	clipped = text
	while clipped:
		clipped = clipped[:-1]
		candidate = clipped.rstrip() + ELLIPSIS
		if string_width(candidate, font_name, font_size) <= max_width:
			return candidate
	return ""


#============================================
def load_image_reader(image: ImageData, image_cache: ImageCache) -> reportlab.lib.utils.ImageReader | None:
	"""
	Decode image bytes into a cached ImageReader.

	Args:
		image: Image payload.
		image_cache: Cache keyed by image payload.

	Returns:
		ImageReader, or None when the bytes do not decode.
	"""
	if image in image_cache:
		return image_cache[image]
	try:
		pil_image = PIL.Image.open(io.BytesIO(image.content))
		pil_image.load()
		reader = reportlab.lib.utils.ImageReader(pil_image)
	except OSError as error:
		logger.warning("Image could not be decoded for drawing: %s", error)
		reader = None
	image_cache[image] = reader
	return reader


#============================================
def draw_centered_line(
	pdf: reportlab.pdfgen.canvas.Canvas,
	text: str,
	top: float,
	font_name: str,
	font_size: float,
	color: str,
	max_width: float,
) -> float:
	"""
	Draw one centered text line below a top edge in card coordinates.

	Args:
		pdf: ReportLab canvas, origin at the card center.
		text: Unescaped text.
		top: Top edge of the line box in points.
		font_name: ReportLab font name.
		font_size: Font size in points.
		color: Hex color.
		max_width: Available width in points.

	Returns:
		Bottom edge of the line box in points.
	"""
	line_height = font_size * LINE_HEIGHT_FACTOR
	fitted = clip_text_to_width(text, font_name, font_size, max_width)
	if fitted:
		red, green, blue = parse_hex_color(color)
		pdf.setFillColorRGB(red, green, blue)
		pdf.setFont(font_name, font_size)
		descent = reportlab.pdfbase.pdfmetrics.getDescent(font_name) * font_size / 1000.0
		pdf.drawCentredString(0.0, top - line_height - descent, fitted)
	return top - line_height


#============================================
def draw_card_frame(pdf: reportlab.pdfgen.canvas.Canvas, layout: LayoutConfig) -> None:
	"""
	Draw the white, bordered card box centered on the origin.

	Args:
		pdf: ReportLab canvas, origin at the card center.
		layout: Layout configuration.
	"""
	width = mm_to_points(layout.card_width)
	height = mm_to_points(layout.card_height)
	red, green, blue = parse_hex_color(mc.config.COLOR_BORDER)
	pdf.setStrokeColorRGB(red, green, blue)
	pdf.setFillColorRGB(1.0, 1.0, 1.0)
	pdf.setLineWidth(mm_to_points(mc.config.CARD_BORDER_WIDTH))
	pdf.roundRect(
		-width / 2.0,
		-height / 2.0,
		width,
		height,
		mm_to_points(mc.config.CARD_CORNER_RADIUS),
		stroke=1,
		fill=1,
	)


#============================================
def draw_qr_box(
	pdf: reportlab.pdfgen.canvas.Canvas,
	cell: CardCell,
	top: float,
	layout: LayoutConfig,
	image_cache: ImageCache,
) -> float:
	"""
	Draw the QR image, or the unavailable label, in its square box.

	Args:
		pdf: ReportLab canvas, origin at the card center.
		cell: Card cell.
		top: Top edge of the box in points.
		layout: Layout configuration.
		image_cache: ImageReader cache.

	Returns:
		Bottom edge of the box in points.
	"""
	size = mm_to_points(layout.qr_size)
	left = -size / 2.0
	bottom = top - size
	red, green, blue = parse_hex_color(mc.config.COLOR_QR_BACKGROUND)
	pdf.setFillColorRGB(red, green, blue)
	pdf.roundRect(left, bottom, size, size, mm_to_points(mc.config.QR_CORNER_RADIUS), stroke=0, fill=1)

	reader = None
	if cell.qr_image is not None:
		reader = load_image_reader(cell.qr_image, image_cache)
	if reader is not None:
		pdf.drawImage(
			reader,
			left,
			bottom,
			width=size,
			height=size,
			mask="auto",
			preserveAspectRatio=True,
			anchor="c",
		)
	else:
		font_size = mm_to_points(mc.config.PLACEHOLDER_FONT)
		text_top = bottom + (size + font_size * LINE_HEIGHT_FACTOR) / 2.0
		draw_centered_line(
			pdf,
			mc.config.QR_UNAVAILABLE_LABEL,
			text_top,
			DEFAULT_FONT_REGULAR,
			font_size,
			mc.config.COLOR_MUTED,
			size,
		)
	return bottom


#============================================
def draw_card(
	pdf: reportlab.pdfgen.canvas.Canvas,
	cell: CardCell,
	layout: LayoutConfig,
	image_cache: ImageCache,
) -> None:
	"""
	Draw one card centered on the origin.

	Args:
		pdf: ReportLab canvas, origin at the card center.
		cell: Card cell, text escaped for markup.
		layout: Layout configuration.
		image_cache: ImageReader cache.
	"""
	draw_card_frame(pdf, layout)
	inner_width = mm_to_points(layout.card_width - 2.0 * layout.card_padding)
	inner_width = max(inner_width, 0.0)
	stack_gap = mm_to_points(mc.config.CARD_STACK_GAP)

	top = mm_to_points(layout.card_height) / 2.0 - mm_to_points(layout.card_margin_top)
	top = draw_centered_line(
		pdf,
		html.unescape(cell.company_name),
		top,
		DEFAULT_FONT_BOLD,
		mm_to_points(layout.company_font),
		mc.config.COLOR_TEXT,
		inner_width,
	)
	top -= mm_to_points(mc.config.COMPANY_NAME_GAP) + stack_gap
	top = draw_qr_box(pdf, cell, top, layout, image_cache)
	top -= stack_gap
	top = draw_centered_line(
		pdf,
		html.unescape(cell.name),
		top,
		DEFAULT_FONT_BOLD,
		mm_to_points(layout.name_font),
		mc.config.COLOR_TEXT,
		inner_width,
	)
	top -= stack_gap
	draw_centered_line(
		pdf,
		html.unescape(cell.code),
		top,
		DEFAULT_FONT_REGULAR,
		mm_to_points(layout.code_font),
		mc.config.COLOR_CODE,
		inner_width,
	)


#============================================
def draw_placeholder(pdf: reportlab.pdfgen.canvas.Canvas, layout: LayoutConfig) -> None:
	"""
	Draw an empty bordered placeholder centered on the origin.

	Args:
		pdf: ReportLab canvas, origin at the card center.
		layout: Layout configuration.
	"""
	draw_card_frame(pdf, layout)
	font_size = mm_to_points(mc.config.PLACEHOLDER_FONT)
	draw_centered_line(
		pdf,
		mc.config.PLACEHOLDER_LABEL,
		font_size * LINE_HEIGHT_FACTOR / 2.0,
		DEFAULT_FONT_REGULAR,
		font_size,
		mc.config.COLOR_PLACEHOLDER,
		mm_to_points(layout.card_width),
	)


#============================================
def draw_logo(
	pdf: reportlab.pdfgen.canvas.Canvas,
	logo: ImageData,
	layout: LayoutConfig,
	page_height: float,
	image_cache: ImageCache,
) -> None:
	"""
	Draw the logo left aligned in the header band.

	Args:
		pdf: ReportLab canvas.
		logo: Logo image.
		layout: Layout configuration.
		page_height: Page height in points.
		image_cache: ImageReader cache.
	"""
	reader = load_image_reader(logo, image_cache)
	if reader is None:
		return
	image_width, image_height = reader.getSize()
	if image_width <= 0 or image_height <= 0:
		return
	max_width = mm_to_points(mc.config.LOGO_MAX_WIDTH)
	max_height = mm_to_points(mc.config.LOGO_MAX_HEIGHT)
	scale = min(max_width / image_width, max_height / image_height)
	width = image_width * scale
	height = image_height * scale
	header_top = page_height - mm_to_points(layout.margin_top)
	header_height = mm_to_points(mc.config.HEADER_HEIGHT)
	logo_y = header_top - header_height + (header_height - height) / 2.0
	pdf.drawImage(
		reader,
		mm_to_points(layout.margin_left),
		logo_y,
		width=width,
		height=height,
		mask="auto",
	)


#============================================
def draw_page(
	pdf: reportlab.pdfgen.canvas.Canvas,
	page: PageNode,
	document: Document,
	page_size: tuple[float, float],
	image_cache: ImageCache,
) -> None:
	"""
	Draw one page of cards.

	Args:
		pdf: ReportLab canvas.
		page: Page node.
		document: Card document.
		page_size: Page (width, height) in points.
		image_cache: ImageReader cache.
	"""
	layout = document.layout
	geometry = document.geometry
	page_width, page_height = page_size
	page_width_mm = page_width * mc.config.MM_PER_INCH / mc.config.POINTS_PER_INCH

	if page.logo is not None:
		draw_logo(pdf, page.logo, layout, page_height, image_cache)

	grid_left, grid_top = mc.geometry.compute_grid_origin(
		layout,
		geometry,
		page_width_mm,
		page.logo is not None,
	)
	for slot, cell in enumerate(page.cells):
		cell_x, cell_y = mc.geometry.compute_cell_origin(geometry, slot, grid_left, grid_top)
		center_x = mm_to_points(cell_x + geometry.cell_width / 2.0)
		center_y = page_height - mm_to_points(cell_y + geometry.cell_height / 2.0)
		pdf.saveState()
		pdf.translate(center_x, center_y)
		# CSS rotates clockwise on screen; the PDF y axis points up
		pdf.rotate(-geometry.rotation)
		if isinstance(cell, CardCell):
			draw_card(pdf, cell, layout, image_cache)
		else:
			draw_placeholder(pdf, layout)
		pdf.restoreState()


#============================================
def render_document_pdf(document: Document, page_format: str = DEFAULT_PAGE_FORMAT) -> bytes:
	"""
	Render a card document to PDF bytes.

	Args:
		document: Card document.
		page_format: Page format name.

	Returns:
		PDF file content.
	"""
	page_size = mc.geometry.page_size_points(page_format)
	buffer = io.BytesIO()
	pdf = reportlab.pdfgen.canvas.Canvas(buffer, pagesize=page_size)
	pdf.setTitle("Cards de Materiais")
	image_cache: ImageCache = {}
	for page in document.pages:
		draw_page(pdf, page, document, page_size, image_cache)
		pdf.showPage()
	pdf.save()
	return buffer.getvalue()


#============================================
def render_document_to_file(
	document: Document,
	output_path: pathlib.Path,
	page_format: str = DEFAULT_PAGE_FORMAT,
) -> int:
	"""
	Render a card document and write the PDF to disk.

	Args:
		document: Card document.
		output_path: Output PDF path.
		page_format: Page format name.

	Returns:
		Number of bytes written.
	"""
	content = render_document_pdf(document, page_format)
	output_path.parent.mkdir(parents=True, exist_ok=True)
	output_path.write_bytes(content)
	return len(content)
