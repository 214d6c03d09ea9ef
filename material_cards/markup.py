"""
Serialize card documents to HTML.
"""

# Standard Library
import html

# local repo modules
import material_cards as mc
import material_cards.config
import material_cards.document
import material_cards.geometry


Document = mc.document.Document
CardCell = mc.document.CardCell
PageNode = mc.document.PageNode
RenderMode = mc.document.RenderMode

PLACEHOLDER_LABEL = mc.config.PLACEHOLDER_LABEL
QR_UNAVAILABLE_LABEL = mc.config.QR_UNAVAILABLE_LABEL

BASE_CSS = """
@page {{ size: {page_format}; margin: 0; }}
body {{ margin: 0; font-family: "Helvetica Neue", Arial, sans-serif; color: #111827; }}
.page {{
  width: {page_width:g}mm; height: {page_height:g}mm;
  padding: {margin_top:g}mm {margin_right:g}mm {margin_bottom:g}mm {margin_left:g}mm;
  box-sizing: border-box; display: flex; flex-direction: column; position: relative;
}}
.page + .page {{ page-break-before: always; }}
.page-header {{
  display: flex; align-items: center; justify-content: flex-start;
  min-height: {header_height:g}mm; margin: 0 0 {header_gap:g}mm 0;
}}
.logo {{ max-height: {logo_max_height:g}mm; max-width: {logo_max_width:g}mm; object-fit: contain; }}
.grid {{
  display: grid;
  grid-template-columns: repeat({cols}, {cell_width:g}mm);
  grid-template-rows: repeat({rows}, {cell_height:g}mm);
  column-gap: {gap_col:g}mm; row-gap: {gap_row:g}mm;
  width: {total_width:g}mm; height: {total_height:g}mm;
  margin: 0 auto; overflow: visible; position: relative;
}}
.card {{
  overflow: visible; display: flex; align-items: center; justify-content: center;
  position: relative; width: 100%; height: 100%; background: transparent;
}}
.card-content {{
  width: {card_width:g}mm; height: {card_height:g}mm;
  padding: {card_margin_top:g}mm {card_padding:g}mm {card_margin_bottom:g}mm {card_padding:g}mm;
  box-sizing: border-box; position: relative;
  transform: rotate({rotation:g}deg); transform-origin: center center;
  background: #fff; border: 0.6mm solid #1f2937; border-radius: 1.5mm;
  display: flex; flex-direction: column; align-items: center; justify-content: flex-start;
  gap: 3mm;
}}
.card-content.placeholder {{ justify-content: center; }}
.company-name {{
  font-size: {company_font:g}mm; font-weight: 700; color: #0f172a;
  text-align: center; margin: 0 0 2mm 0;
}}
.material-name, .material-code {{
  text-align: center; margin: 0; white-space: nowrap; overflow: hidden;
  text-overflow: ellipsis; max-width: 100%;
}}
.material-name {{ font-size: {name_font:g}mm; font-weight: 600; color: #0f172a; }}
.material-code {{ font-size: {code_font:g}mm; color: #475569; }}
.qr-wrapper {{
  width: {qr_size:g}mm; height: {qr_size:g}mm; display: flex; align-items: center;
  justify-content: center; background: #f1f5f9; border-radius: 4px; overflow: hidden;
  flex-shrink: 0;
}}
.qr-wrapper img {{ width: 100%; height: 100%; object-fit: contain; }}
.qr-missing {{ font-size: 3mm; color: #9ca3af; }}
.placeholder-label {{ font-size: 3mm; color: #d1d5db; }}
"""

INTERACTIVE_CSS = """
body { background: #e2e8f0; padding: 32px; display: flex; justify-content: center; }
.document { display: flex; flex-direction: column; gap: 32px; align-items: center; }
.page { background: #fff; box-shadow: 0 20px 40px rgba(15, 23, 42, 0.25); border-radius: 8px; }
"""

DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html lang="pt-BR">
<head>
<meta charset="UTF-8" />
<meta name="viewport" content="width=device-width, initial-scale=1.0" />
<title>Cards de Materiais</title>
<style>
{css}
</style>
</head>
<body>
{body}
</body>
</html>
"""

VIEWER_TEMPLATE = """<!DOCTYPE html>
<html lang="pt-BR">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Visualização dos Cards</title>
<style>
body {{ margin: 0; font-family: Arial, sans-serif; display: flex; flex-direction: column;
  height: 100vh; background: #0f172a; color: #e2e8f0; }}
header {{ padding: 16px; text-align: center; background: #111c3a; }}
header h1 {{ margin: 0; font-size: 20px; }}
.toolbar {{ display: flex; justify-content: center; gap: 12px; padding: 12px; background: #0b1120; }}
.button {{ display: inline-flex; padding: 10px 16px; font-size: 16px; font-weight: 600;
  color: #0b1120; background: #38bdf8; border-radius: 8px; text-decoration: none; }}
.viewer-container {{ height: calc(100vh - 160px); padding: 0 16px 16px; }}
.viewer-container embed {{ width: 100%; height: 100%; border: none; border-radius: 12px; }}
@media (max-width: 768px) {{
  .viewer-container {{ padding: 0; height: calc(100vh - 140px); }}
  .toolbar {{ flex-direction: column; padding: 8px; }}
}}
</style>
</head>
<body>
<header><h1>Visualização dos Cards</h1></header>
<div class="toolbar"><a class="button" href="{url}" download>Baixar PDF</a></div>
<main class="viewer-container">
<embed src="{url}" type="application/pdf" width="100%" height="98%" />
</main>
</body>
</html>
"""


#============================================
def build_css(document: Document, page_format: str) -> str:
	"""
	Build the stylesheet for a document.

	Args:
		document: Card document.
		page_format: Page format name.

	Returns:
		CSS text.
	"""
	layout = document.layout
	geometry = document.geometry
	page_width, page_height = mc.geometry.page_size_mm(page_format)
	css = BASE_CSS.format(
		page_format=page_format.upper(),
		page_width=page_width,
		page_height=page_height,
		margin_top=layout.margin_top,
		margin_right=layout.margin_right,
		margin_bottom=layout.margin_bottom,
		margin_left=layout.margin_left,
		header_height=mc.config.HEADER_HEIGHT,
		header_gap=mc.config.HEADER_GAP,
		logo_max_height=mc.config.LOGO_MAX_HEIGHT,
		logo_max_width=mc.config.LOGO_MAX_WIDTH,
		cols=geometry.cols,
		rows=geometry.rows,
		cell_width=geometry.cell_width,
		cell_height=geometry.cell_height,
		gap_col=geometry.gap_col,
		gap_row=geometry.gap_row,
		total_width=geometry.total_width,
		total_height=geometry.total_height,
		card_width=layout.card_width,
		card_height=layout.card_height,
		card_padding=layout.card_padding,
		card_margin_top=layout.card_margin_top,
		card_margin_bottom=layout.card_margin_bottom,
		rotation=layout.rotate_card,
		company_font=layout.company_font,
		name_font=layout.name_font,
		code_font=layout.code_font,
		qr_size=layout.qr_size,
	)
	if document.mode == RenderMode.INTERACTIVE:
		css += INTERACTIVE_CSS
	return css


#============================================
def card_html(cell: CardCell) -> str:
	"""
	Serialize one card cell. Cell text is already escaped.

	Args:
		cell: Card cell.

	Returns:
		HTML fragment.
	"""
	if cell.qr_image is not None:
		src = html.escape(cell.qr_image.data_url(), quote=True)
		qr = f'<img src="{src}" alt="QR Code">'
	else:
		qr = f'<div class="qr-missing">{QR_UNAVAILABLE_LABEL}</div>'
	return (
		'<div class="card"><div class="card-content">'
		f'<div class="company-name">{cell.company_name}</div>'
		f'<div class="qr-wrapper">{qr}</div>'
		f'<div class="material-name">{cell.name}</div>'
		f'<div class="material-code">{cell.code}</div>'
		'</div></div>'
	)


#============================================
def placeholder_html() -> str:
	"""
	Serialize an empty placeholder cell.

	Returns:
		HTML fragment.
	"""
	return (
		'<div class="card"><div class="card-content placeholder">'
		f'<div class="placeholder-label">{PLACEHOLDER_LABEL}</div>'
		'</div></div>'
	)


#============================================
def page_html(page: PageNode) -> str:
	"""
	Serialize one page.

	Args:
		page: Page node.

	Returns:
		HTML fragment.
	"""
	parts = ['<section class="page">']
	if page.logo is not None:
		src = html.escape(page.logo.data_url(), quote=True)
		parts.append(f'<header class="page-header"><img class="logo" src="{src}" alt="Logo"></header>')
	parts.append('<div class="grid">')
	for cell in page.cells:
		if isinstance(cell, CardCell):
			parts.append(card_html(cell))
		else:
			parts.append(placeholder_html())
	parts.append('</div></section>')
	return "\n".join(parts)


#============================================
def document_to_html(document: Document, page_format: str = mc.config.DEFAULT_PAGE_FORMAT) -> str:
	"""
	Serialize a card document to a standalone HTML page.

	Args:
		document: Card document.
		page_format: Page format name.

	Returns:
		HTML text.
	"""
	pages = "\n".join(page_html(page) for page in document.pages)
	if document.mode == RenderMode.INTERACTIVE:
		body = f'<main class="document">\n{pages}\n</main>'
	else:
		body = pages
	return DOCUMENT_TEMPLATE.format(css=build_css(document, page_format), body=body)


#============================================
def viewer_page_html(download_url: str) -> str:
	"""
	Build the HTML wrapper that embeds a generated PDF.

	Args:
		download_url: Absolute URL of the PDF.

	Returns:
		HTML text.
	"""
	return VIEWER_TEMPLATE.format(url=html.escape(download_url, quote=True))
