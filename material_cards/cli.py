"""
CLI entry point for rendering card sheets from a JSON payload.
"""

# Standard Library
import argparse
import json
import pathlib
import time

# local repo modules
import material_cards as mc
import material_cards.config
import material_cards.errors
import material_cards.geometry
import material_cards.images
import material_cards.markup
import material_cards.pipeline
import material_cards.render


RenderMode = mc.pipeline.RenderMode
DEFAULT_PAGE_FORMAT = mc.config.DEFAULT_PAGE_FORMAT


#============================================
def skip_fetch(url: str | None) -> None:
	"""
	Image fetcher that never touches the network.

	Args:
		url: Ignored.

	Returns:
		None, so every card gets the unavailable QR label.
	"""
	return None


#============================================
def load_payload(path: pathlib.Path) -> dict:
	"""
	Load a JSON payload from disk.

	Args:
		path: JSON path.

	Returns:
		Decoded payload.
	"""
	text = path.read_text(encoding="utf-8")
	try:
		return json.loads(text)
	except json.JSONDecodeError as error:
		raise mc.errors.ValidationError(f"Invalid JSON payload in {path}: {error}") from error


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Argument list, defaults to sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Render material cards to a PDF sheet.")
	parser.add_argument("payload", help="JSON payload with layout, materials and optional logoUrl.")

	output_group = parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_path", default=None, help="Output PDF path.")
	output_group.add_argument("-w", "--html", dest="html_path", default=None, help="Output HTML path.")
	output_group.add_argument(
		"-f",
		"--page-format",
		dest="page_format",
		default=DEFAULT_PAGE_FORMAT,
		choices=sorted(mc.geometry.PAGE_FORMATS),
		help="Page format.",
	)

	behavior_group = parser.add_argument_group("Behavior")
	behavior_group.add_argument(
		"-m",
		"--mode",
		dest="mode",
		default=RenderMode.PRINT.value,
		choices=[mode.value for mode in RenderMode],
		help="HTML chrome: print or interactive.",
	)
	behavior_group.add_argument("-s", "--skip-images", dest="skip_images", action="store_true", help="Do not fetch logo or QR images.")
	behavior_group.add_argument("-S", "--no-skip-images", dest="skip_images", action="store_false", help="Fetch logo and QR images.")
	parser.set_defaults(skip_images=False)

	args = parser.parse_args(argv)
	if args.output_path is None and args.html_path is None:
		parser.error("at least one of --output or --html is required")
	return args


#============================================
def run_pipeline(args: argparse.Namespace) -> None:
	"""
	Render a payload file to PDF and/or HTML.

	Args:
		args: Parsed argparse namespace.
	"""
	print("Material cards pipeline")
	print(f"Payload: {args.payload}")
	if args.output_path:
		print(f"Output PDF: {args.output_path}")
	if args.html_path:
		print(f"Output HTML: {args.html_path}")
	print(f"Page format: {args.page_format}")
	print(f"Skip images: {args.skip_images}")

	start_time = time.perf_counter()
	payload = load_payload(pathlib.Path(args.payload))
	fetcher = skip_fetch if args.skip_images else mc.images.fetch_image
	document = mc.pipeline.prepare_document(payload, RenderMode(args.mode), fetcher=fetcher)
	build_end = time.perf_counter()
	print(f"Pages: {len(document.pages)}")
	print(f"Cards: {document.card_count}")
	print(f"Placeholders: {document.placeholder_count}")
	print(f"Grid cell: {document.geometry.cell_width:g} x {document.geometry.cell_height:g} mm")

	if args.html_path:
		html_path = pathlib.Path(args.html_path)
		html_path.parent.mkdir(parents=True, exist_ok=True)
		html_path.write_text(mc.markup.document_to_html(document, args.page_format), encoding="utf-8")
		print(f"HTML written: {html_path}")

	render_end = build_end
	if args.output_path:
		output_path = pathlib.Path(args.output_path)
		size = mc.render.render_document_to_file(document, output_path, args.page_format)
		render_end = time.perf_counter()
		print(f"PDF written: {output_path} ({size} bytes)")

	print(
		"Timing: build={:.2f}s render={:.2f}s total={:.2f}s".format(
			build_end - start_time,
			render_end - build_end,
			render_end - start_time,
		)
	)


#============================================
def main() -> None:
	"""
	Main entry point.
	"""
	args = parse_args()
	try:
		run_pipeline(args)
	except mc.errors.ValidationError as error:
		raise SystemExit(f"Invalid payload: {error}") from error
