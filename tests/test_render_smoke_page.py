import io
import pathlib

import fitz
import PIL.Image
import pypdf

import material_cards.config
import material_cards.document
import material_cards.geometry
import material_cards.render
import material_cards.validate


DPI = 150
INK_THRESHOLD = 200
CARD_INK_MIN = 0.02
GAP_INK_LIMIT = 0.001
EDGE_TRIM_MM = 1.0

ImageData = material_cards.config.ImageData
ResolvedMaterial = material_cards.config.ResolvedMaterial


#============================================
def _build_document(payload: dict, qr: ImageData | None, logo: ImageData | None = None):
	"""
	Build a card document with the same QR image on every card.
	"""
	request = material_cards.validate.validate_payload(payload)
	resolved = [ResolvedMaterial(material=material, qr_image=qr) for material in request.materials]
	return material_cards.document.build_document(resolved, request.layout, logo=logo)


#============================================
def _render_pdf_page(path: pathlib.Path, index: int) -> PIL.Image.Image:
	"""
	Render one page of a PDF to an image.

	Args:
		path: PDF path.
		index: Page index.

	Returns:
		PIL image.
	"""
	document = fitz.open(path)
	page = document[index]
	scale = DPI / 72.0
	matrix = fitz.Matrix(scale, scale)
	pixmap = page.get_pixmap(matrix=matrix, alpha=False)
	image = PIL.Image.frombytes("RGB", [pixmap.width, pixmap.height], pixmap.samples)
	document.close()
	return image


#============================================
def _count_ink_ratio(gray: PIL.Image.Image, threshold: int) -> float:
	"""
	Compute the ink ratio for a grayscale region.

	Args:
		gray: Grayscale image region.
		threshold: Pixel intensity threshold.

	Returns:
		Ink ratio.
	"""
	pixels = list(gray.getdata())
	if not pixels:
		return 0.0
	ink = sum(1 for value in pixels if value < threshold)
	return ink / len(pixels)


#============================================
def _crop_mm(gray: PIL.Image.Image, left: float, top: float, right: float, bottom: float) -> PIL.Image.Image:
	"""
	Crop a region given in millimeters from the page's top-left corner.
	"""
	scale = DPI / material_cards.config.MM_PER_INCH
	box = (
		int(round(left * scale)),
		int(round(top * scale)),
		int(round(right * scale)),
		int(round(bottom * scale)),
	)
	return gray.crop(box)


#============================================
def test_pdf_pages_and_text(tmp_path: pathlib.Path, payload: dict, png_bytes: bytes) -> None:
	"""
	Five materials on a 2x2 grid render as two pages with readable text.
	"""
	payload["materials"][0]["name"] = "Bolt & <Nut>"
	document = _build_document(payload, ImageData(content=png_bytes))
	output_path = tmp_path / "cards.pdf"
	size = material_cards.render.render_document_to_file(document, output_path)
	assert size == output_path.stat().st_size

	reader = pypdf.PdfReader(io.BytesIO(output_path.read_bytes()))
	assert len(reader.pages) == 2
	first_text = reader.pages[0].extract_text()
	assert "Bolt & <Nut>" in first_text
	assert "&amp;" not in first_text
	assert "MAT-003" in first_text
	second_text = reader.pages[1].extract_text()
	assert "MAT-004" in second_text
	assert second_text.count(material_cards.config.PLACEHOLDER_LABEL) == 3


#============================================
def test_rendered_page_ink_stays_in_cells(tmp_path: pathlib.Path, payload_factory, png_bytes: bytes) -> None:
	"""
	Smoke test the second page: cards carry ink and gaps stay blank.
	"""
	body = payload_factory(count=6, cardHeight=80, qrSize=20)
	document = _build_document(body, ImageData(content=png_bytes))
	output_path = tmp_path / "smoke.pdf"
	material_cards.render.render_document_to_file(document, output_path)

	image = _render_pdf_page(output_path, 1)
	gray = image.convert("L")
	geometry = document.geometry
	page_width, _page_height = material_cards.geometry.page_size_mm("A4")
	grid_left, grid_top = material_cards.geometry.compute_grid_origin(
		document.layout,
		geometry,
		page_width,
		False,
	)

	violations = []
	for slot, cell in enumerate(document.pages[1].cells):
		cell_x, cell_y = material_cards.geometry.compute_cell_origin(geometry, slot, grid_left, grid_top)
		inside = _crop_mm(
			gray,
			cell_x + EDGE_TRIM_MM,
			cell_y + EDGE_TRIM_MM,
			cell_x + geometry.cell_width - EDGE_TRIM_MM,
			cell_y + geometry.cell_height - EDGE_TRIM_MM,
		)
		ratio = _count_ink_ratio(inside, INK_THRESHOLD)
		if isinstance(cell, material_cards.document.CardCell) and ratio < CARD_INK_MIN:
			violations.append(f"slot {slot} card ink ratio {ratio:.3f}")

	column_gap = _crop_mm(
		gray,
		grid_left + geometry.cell_width + EDGE_TRIM_MM,
		grid_top,
		grid_left + geometry.cell_width + geometry.gap_col - EDGE_TRIM_MM,
		grid_top + geometry.total_height,
	)
	row_gap = _crop_mm(
		gray,
		grid_left,
		grid_top + geometry.cell_height + EDGE_TRIM_MM,
		grid_left + geometry.total_width,
		grid_top + geometry.cell_height + geometry.gap_row - EDGE_TRIM_MM,
	)
	outside = _crop_mm(
		gray,
		grid_left + geometry.total_width + EDGE_TRIM_MM,
		grid_top,
		page_width - EDGE_TRIM_MM,
		grid_top + geometry.total_height,
	)
	for region_name, region in (("column gap", column_gap), ("row gap", row_gap), ("right of grid", outside)):
		ratio = _count_ink_ratio(region, INK_THRESHOLD)
		if ratio > GAP_INK_LIMIT:
			violations.append(f"{region_name} ink ratio {ratio:.3f}")

	if violations:
		message = "Ink outside expected regions:\n"
		message += "\n".join(violations[:10])
		raise AssertionError(message)


#============================================
def test_rotated_and_letter_layouts_render(payload_factory, png_bytes: bytes) -> None:
	"""
	Rotated cards and the letter format produce valid PDFs.
	"""
	logo = ImageData(content=png_bytes)
	for rotation in (90, 180, -90, 45):
		document = _build_document(payload_factory(rotateCard=rotation), None, logo=logo)
		for page_format in ("A4", "LETTER"):
			content = material_cards.render.render_document_pdf(document, page_format)
			reader = pypdf.PdfReader(io.BytesIO(content))
			assert len(reader.pages) == len(document.pages)


#============================================
def test_undecodable_qr_degrades(payload: dict) -> None:
	"""
	QR bytes that do not decode draw the unavailable label instead.
	"""
	document = _build_document(payload, ImageData(content=b"not an image"))
	content = material_cards.render.render_document_pdf(document)
	reader = pypdf.PdfReader(io.BytesIO(content))
	assert material_cards.config.QR_UNAVAILABLE_LABEL in reader.pages[0].extract_text()
