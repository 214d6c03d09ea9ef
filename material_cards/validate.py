"""
Validate card request payloads into typed configs.
"""

# Standard Library
import math

# local repo modules
import material_cards as mc
import material_cards.config
import material_cards.errors


CardRequest = mc.config.CardRequest
LayoutConfig = mc.config.LayoutConfig
Material = mc.config.Material
ValidationError = mc.errors.ValidationError

REQUIRED_LAYOUT_FIELDS = mc.config.REQUIRED_LAYOUT_FIELDS
MAX_GRID_CELLS = mc.config.MAX_GRID_CELLS

OPTIONAL_NUMERIC_FIELDS = {
	"rotateCard": ("rotate_card", mc.config.DEFAULT_ROTATE_CARD),
	"cardPadding": ("card_padding", mc.config.DEFAULT_CARD_PADDING),
	"cardMarginTop": ("card_margin_top", mc.config.DEFAULT_CARD_MARGIN_TOP),
	"cardMarginBottom": ("card_margin_bottom", mc.config.DEFAULT_CARD_MARGIN_BOTTOM),
	"companyFont": ("company_font", mc.config.DEFAULT_COMPANY_FONT),
	"nameFont": ("name_font", mc.config.DEFAULT_NAME_FONT),
	"codeFont": ("code_font", mc.config.DEFAULT_CODE_FONT),
	"qrSize": ("qr_size", mc.config.DEFAULT_QR_SIZE),
}

# original service used Portuguese keys
NAME_KEYS = ("name", "nome")
CODE_KEYS = ("code", "codigo")


#============================================
def is_number(value) -> bool:
	"""
	Check for a real, finite number.

	Args:
		value: Any value.

	Returns:
		True for int or float values other than bool, NaN and infinity.
	"""
	if isinstance(value, bool):
		return False
	if not isinstance(value, (int, float)):
		return False
	return math.isfinite(value)


#============================================
def read_whole_number(layout: dict, key: str) -> int:
	"""
	Read a numeric layout field that must hold a whole number.

	Args:
		layout: Layout dict.
		key: Field name.

	Returns:
		Integer value.
	"""
	value = layout[key]
	if isinstance(value, float) and not value.is_integer():
		raise ValidationError(f"Layout field '{key}' must be a whole number.")
	if value < 0:
		raise ValidationError(f"Layout field '{key}' must not be negative.")
	return int(value)


#============================================
def read_max_chars(layout: dict, key: str) -> int | None:
	"""
	Read an optional character budget.

	Args:
		layout: Layout dict.
		key: Field name.

	Returns:
		Integer budget or None when unset.
	"""
	value = layout.get(key)
	if value is None:
		return None
	if not is_number(value):
		raise ValidationError(f"Layout field '{key}' must be numeric.")
	return int(value)


#============================================
def validate_layout(layout) -> LayoutConfig:
	"""
	Validate a layout dict and apply defaults.

	Args:
		layout: Raw layout value from the payload.

	Returns:
		LayoutConfig.
	"""
	if not isinstance(layout, dict):
		raise ValidationError("Field 'layout' is required.")

	for key in REQUIRED_LAYOUT_FIELDS:
		if not is_number(layout.get(key)):
			raise ValidationError(f"Layout field '{key}' must be numeric.")

	for key in ("marginTop", "marginBottom", "marginLeft", "marginRight", "gapCol", "gapRow"):
		if layout[key] < 0:
			raise ValidationError(f"Layout field '{key}' must not be negative.")
	for key in ("cardWidth", "cardHeight"):
		if layout[key] <= 0:
			raise ValidationError(f"Layout field '{key}' must be greater than zero.")

	options = {}
	for key, (field_name, default) in OPTIONAL_NUMERIC_FIELDS.items():
		value = layout.get(key)
		if value is None:
			options[field_name] = default
			continue
		if not is_number(value):
			raise ValidationError(f"Layout field '{key}' must be numeric.")
		options[field_name] = float(value)

	company_name = layout.get("companyName")
	if company_name is None:
		company_name = mc.config.DEFAULT_COMPANY_NAME
	elif not isinstance(company_name, str):
		raise ValidationError("Layout field 'companyName' must be a string.")

	cols = read_whole_number(layout, "cols")
	rows = read_whole_number(layout, "rows")
	if cols * rows > MAX_GRID_CELLS:
		raise ValidationError(
			f"Layout grid of {cols}x{rows} exceeds {MAX_GRID_CELLS} cells per page."
		)

	return LayoutConfig(
		cols=cols,
		rows=rows,
		margin_top=float(layout["marginTop"]),
		margin_bottom=float(layout["marginBottom"]),
		margin_left=float(layout["marginLeft"]),
		margin_right=float(layout["marginRight"]),
		gap_col=float(layout["gapCol"]),
		gap_row=float(layout["gapRow"]),
		card_width=float(layout["cardWidth"]),
		card_height=float(layout["cardHeight"]),
		company_name=company_name,
		max_chars_name=read_max_chars(layout, "maxCharsName"),
		max_chars_code=read_max_chars(layout, "maxCharsCode"),
		**options,
	)


#============================================
def first_present(entry: dict, keys: tuple[str, ...]):
	"""
	Return the first non-empty value among alias keys.

	Args:
		entry: Material dict.
		keys: Candidate keys in priority order.

	Returns:
		Value or None.
	"""
	for key in keys:
		value = entry.get(key)
		if value:
			return value
	return None


#============================================
def validate_materials(materials) -> tuple[Material, ...]:
	"""
	Validate the materials list.

	Args:
		materials: Raw materials value from the payload.

	Returns:
		Tuple of Material entries in input order.
	"""
	if not isinstance(materials, list) or not materials:
		raise ValidationError("Materials must be a list with at least one item.")

	result: list[Material] = []
	for index, entry in enumerate(materials):
		if not isinstance(entry, dict):
			raise ValidationError(f"Material at position {index} must be an object.")
		name = first_present(entry, NAME_KEYS)
		code = first_present(entry, CODE_KEYS)
		if not name or not code:
			raise ValidationError(f"Material at position {index} needs 'name' and 'code'.")
		qr_url = entry.get("qr") or None
		if qr_url is not None and not isinstance(qr_url, str):
			raise ValidationError(f"Material at position {index} has a non-string 'qr'.")
		result.append(Material(name=str(name), code=str(code), qr_url=qr_url))
	return tuple(result)


#============================================
def validate_payload(body) -> CardRequest:
	"""
	Validate a full card request body.

	Args:
		body: Decoded JSON body.

	Returns:
		CardRequest.
	"""
	if not isinstance(body, dict):
		raise ValidationError("Invalid JSON payload.")

	logo_url = body.get("logoUrl") or None
	if logo_url is not None and not isinstance(logo_url, str):
		raise ValidationError("Field 'logoUrl' must be a string.")

	layout = validate_layout(body.get("layout"))
	materials = validate_materials(body.get("materials"))
	return CardRequest(logo_url=logo_url, layout=layout, materials=materials)
