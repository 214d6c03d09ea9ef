"""
Split ordered items into fixed-size pages.
"""

# Standard Library
import typing

# local repo modules
import material_cards as mc
import material_cards.errors


InvalidLayoutError = mc.errors.InvalidLayoutError

T = typing.TypeVar("T")


#============================================
def page_count(total: int, cells_per_page: int) -> int:
	"""
	Count the pages needed for a number of items.

	Args:
		total: Number of items.
		cells_per_page: Cells on one page.

	Returns:
		Number of pages, zero when there are no items.
	"""
	if cells_per_page <= 0:
		raise InvalidLayoutError("Invalid layout: cols * rows must be greater than zero.")
	if total <= 0:
		return 0
	return (total + cells_per_page - 1) // cells_per_page


#============================================
def paginate(items: typing.Sequence[T], cells_per_page: int) -> list[list[T]]:
	"""
	Split items into consecutive pages, keeping their order.

	Args:
		items: Ordered items.
		cells_per_page: Cells on one page.

	Returns:
		List of pages; every page except the last is full.
	"""
	pages: list[list[T]] = []
	for page_index in range(page_count(len(items), cells_per_page)):
		start = page_index * cells_per_page
		pages.append(list(items[start:start + cells_per_page]))
	return pages
