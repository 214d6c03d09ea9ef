"""
Build the structural card document: pages, grid cells and card content.

The document holds layout decisions only. Serializers in markup.py and
render.py turn it into HTML or PDF.
"""

# Standard Library
import dataclasses
import enum
import typing

# local repo modules
import material_cards as mc
import material_cards.config
import material_cards.geometry
import material_cards.pagination
import material_cards.text_fit


LayoutConfig = mc.config.LayoutConfig
ImageData = mc.config.ImageData
ResolvedMaterial = mc.config.ResolvedMaterial
GridGeometry = mc.geometry.GridGeometry


class RenderMode(str, enum.Enum):
	INTERACTIVE = "interactive"
	PRINT = "print"


@dataclasses.dataclass(frozen=True)
class CardCell:
	company_name: str
	name: str
	code: str
	qr_image: ImageData | None = None

	@property
	def qr_available(self) -> bool:
		return self.qr_image is not None


@dataclasses.dataclass(frozen=True)
class PlaceholderCell:
	pass


Cell = typing.Union[CardCell, PlaceholderCell]


@dataclasses.dataclass(frozen=True)
class PageNode:
	index: int
	cells: tuple[Cell, ...]
	logo: ImageData | None = None

	@property
	def cards(self) -> list[CardCell]:
		return [cell for cell in self.cells if isinstance(cell, CardCell)]

	@property
	def placeholders(self) -> list[PlaceholderCell]:
		return [cell for cell in self.cells if isinstance(cell, PlaceholderCell)]


@dataclasses.dataclass(frozen=True)
class Document:
	pages: tuple[PageNode, ...]
	layout: LayoutConfig
	geometry: GridGeometry
	logo: ImageData | None = None
	mode: RenderMode = RenderMode.PRINT

	@property
	def card_count(self) -> int:
		return sum(len(page.cards) for page in self.pages)

	@property
	def placeholder_count(self) -> int:
		return sum(len(page.placeholders) for page in self.pages)


#============================================
def build_card(resolved: ResolvedMaterial, layout: LayoutConfig) -> CardCell:
	"""
	Build the card record for one material.

	Args:
		resolved: Material with its resolved QR image.
		layout: Layout configuration.

	Returns:
		CardCell with fitted and escaped text.
	"""
	material = resolved.material
	name = mc.text_fit.fit_text(material.name, layout.max_chars_name)
	code = mc.text_fit.fit_text(material.code, layout.max_chars_code)
	return CardCell(
		company_name=mc.text_fit.escape_text(layout.company_name),
		name=mc.text_fit.escape_text(name),
		code=mc.text_fit.escape_text(code),
		qr_image=resolved.qr_image,
	)


#============================================
def build_document(
	resolved: typing.Sequence[ResolvedMaterial],
	layout: LayoutConfig,
	logo: ImageData | None = None,
	mode: RenderMode = RenderMode.PRINT,
) -> Document:
	"""
	Compose geometry, pages and card content into a document.

	Args:
		resolved: Materials with resolved QR images, in print order.
		layout: Layout configuration.
		logo: Optional logo, shown on the first page only.
		mode: Render mode, affects outer chrome only.

	Returns:
		Document.
	"""
	geometry = mc.geometry.geometry_for_layout(layout)
	cells_per_page = geometry.cells_per_page

	pages: list[PageNode] = []
	for page_index, page_items in enumerate(mc.pagination.paginate(resolved, cells_per_page)):
		cells: list[Cell] = [build_card(item, layout) for item in page_items]
		# pad the last page so the grid stays full
		cells.extend(PlaceholderCell() for _ in range(cells_per_page - len(cells)))
		pages.append(
			PageNode(
				index=page_index,
				cells=tuple(cells),
				logo=logo if page_index == 0 else None,
			)
		)

	return Document(
		pages=tuple(pages),
		layout=layout,
		geometry=geometry,
		logo=logo,
		mode=RenderMode(mode),
	)
