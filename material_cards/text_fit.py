"""
Text truncation and escaping for card fields.
"""

# Standard Library
import html

# local repo modules
import material_cards as mc
import material_cards.config


ELLIPSIS = mc.config.ELLIPSIS


#============================================
def fit_text(text: str, max_chars: int | None) -> str:
	"""
	Truncate text to a character budget.

	Args:
		text: Input text.
		max_chars: Character budget, None or <= 0 disables truncation.

	Returns:
		Text unchanged when it fits, else the first max_chars characters
		followed by an ellipsis.
	"""
	if not max_chars or max_chars <= 0:
		return text
	if len(text) <= max_chars:
		return text
	return text[:max_chars] + ELLIPSIS


#============================================
def escape_text(value: str) -> str:
	"""
	Escape a user supplied string for markup embedding.

	Args:
		value: Input value.

	Returns:
		String with & < > " ' escaped, empty for non-strings.
	"""
	if not isinstance(value, str):
		return ""
	return html.escape(value, quote=True)
