import json
import math

import pytest

import material_cards.config
import material_cards.errors
import material_cards.validate


validate_payload = material_cards.validate.validate_payload
ValidationError = material_cards.errors.ValidationError


#============================================
def test_defaults_applied(payload: dict) -> None:
	"""
	Optional layout fields fall back to their defaults.
	"""
	request = validate_payload(payload)
	layout = request.layout
	assert layout.rotate_card == 0
	assert layout.card_padding == 8
	assert layout.card_margin_top == 4
	assert layout.card_margin_bottom == 4
	assert layout.company_name == "Appsculpt"
	assert layout.company_font == 3.5
	assert layout.name_font == 4
	assert layout.code_font == 3.2
	assert layout.qr_size == 32
	assert layout.max_chars_name is None
	assert layout.max_chars_code is None
	assert layout.cells_per_page == 4
	assert request.logo_url == "https://logo.example/logo.png"
	assert len(request.materials) == 5
	assert request.materials[0] == material_cards.config.Material(
		name="Material 0",
		code="MAT-000",
		qr_url="https://qr.example/0.png",
	)


#============================================
def test_optional_fields_read(payload_factory) -> None:
	"""
	Provided optional fields override the defaults.
	"""
	body = payload_factory(
		rotateCard=90,
		companyName="ACME",
		maxCharsName=10,
		maxCharsCode=6,
		qrSize=20,
	)
	layout = validate_payload(body).layout
	assert layout.rotate_card == 90
	assert layout.company_name == "ACME"
	assert layout.max_chars_name == 10
	assert layout.max_chars_code == 6
	assert layout.qr_size == 20


#============================================
@pytest.mark.parametrize("field", material_cards.config.REQUIRED_LAYOUT_FIELDS)
def test_missing_required_layout_field(payload: dict, field: str) -> None:
	"""
	Every required layout field must be present.
	"""
	del payload["layout"][field]
	with pytest.raises(ValidationError, match=field):
		validate_payload(payload)


#============================================
@pytest.mark.parametrize("value", ["10", None, True, math.nan, math.inf, -math.inf, [1]])
def test_non_numeric_layout_field(payload: dict, value) -> None:
	"""
	Strings, booleans, NaN and infinity are not numbers.
	"""
	payload["layout"]["cols"] = value
	with pytest.raises(ValidationError):
		validate_payload(payload)


#============================================
def test_non_numeric_rotation_rejected(payload: dict) -> None:
	"""
	A present rotateCard must be numeric.
	"""
	payload["layout"]["rotateCard"] = "90deg"
	with pytest.raises(ValidationError, match="rotateCard"):
		validate_payload(payload)


#============================================
def test_fractional_grid_count_rejected(payload: dict) -> None:
	"""
	Column and row counts are whole numbers.
	"""
	payload["layout"]["rows"] = 2.5
	with pytest.raises(ValidationError, match="rows"):
		validate_payload(payload)


#============================================
def test_zero_grid_passes_validation(payload: dict) -> None:
	"""
	A zero column count is left for the layout check in the builder.
	"""
	payload["layout"]["cols"] = 0
	request = validate_payload(payload)
	assert request.layout.cells_per_page == 0


#============================================
@pytest.mark.parametrize("materials", [[], None, "abc", {"name": "x"}])
def test_materials_must_be_non_empty_list(payload: dict, materials) -> None:
	"""
	Materials must be a non-empty list.
	"""
	payload["materials"] = materials
	with pytest.raises(ValidationError):
		validate_payload(payload)


#============================================
@pytest.mark.parametrize(
	"entry",
	[
		{"code": "X1"},
		{"name": "Bolt"},
		{"name": "", "code": "X1"},
		{"name": "Bolt", "code": ""},
		"Bolt",
	],
)
def test_material_requires_name_and_code(payload: dict, entry) -> None:
	"""
	Each material needs a non-empty name and code.
	"""
	payload["materials"].append(entry)
	with pytest.raises(ValidationError, match="position 5"):
		validate_payload(payload)


#============================================
def test_portuguese_keys_accepted(payload: dict) -> None:
	"""
	nome/codigo are accepted as aliases for name/code.
	"""
	payload["materials"] = [{"nome": "Parafuso", "codigo": "P-01"}]
	request = validate_payload(payload)
	assert request.materials[0].name == "Parafuso"
	assert request.materials[0].code == "P-01"
	assert request.materials[0].qr_url is None


#============================================
@pytest.mark.parametrize("body", [None, [], "payload", 3])
def test_body_must_be_object(body) -> None:
	"""
	Non-object bodies are rejected.
	"""
	with pytest.raises(ValidationError):
		validate_payload(body)


#============================================
def test_negative_margin_and_empty_card_rejected(payload_factory) -> None:
	"""
	Margins may not be negative and cards need a positive size.
	"""
	with pytest.raises(ValidationError, match="marginLeft"):
		validate_payload(payload_factory(marginLeft=-1))
	with pytest.raises(ValidationError, match="cardWidth"):
		validate_payload(payload_factory(cardWidth=0))


#============================================
@pytest.mark.parametrize("field", ["maxCharsName", "maxCharsCode", "rotateCard", "qrSize", "cardPadding"])
def test_infinite_optional_field_rejected(payload: dict, field: str) -> None:
	"""
	1e400 decodes to infinity and must fail validation.
	"""
	payload["layout"][field] = json.loads("1e400")
	with pytest.raises(ValidationError, match=field):
		validate_payload(payload)


#============================================
def test_oversized_grid_rejected(payload_factory) -> None:
	"""
	Grids beyond the per-page cell cap fail before any page is built.
	"""
	limit = material_cards.config.MAX_GRID_CELLS
	with pytest.raises(ValidationError, match="cells per page"):
		validate_payload(payload_factory(cols=1000, rows=1000))
	with pytest.raises(ValidationError, match="cells per page"):
		validate_payload(payload_factory(cols=limit + 1, rows=1))
	layout = validate_payload(payload_factory(cols=limit, rows=1)).layout
	assert layout.cells_per_page == limit
