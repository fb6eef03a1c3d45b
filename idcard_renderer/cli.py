"""
CLI entry points for ID card rendering.
"""

# Standard Library
import argparse
import json
import logging
import pathlib
import sys
import time

# local repo modules
import idcard_renderer as icr
import idcard_renderer.batch
import idcard_renderer.config
import idcard_renderer.document
import idcard_renderer.errors
import idcard_renderer.geometry
import idcard_renderer.layout_defaults
import idcard_renderer.preview
import idcard_renderer.raster


RenderError = icr.errors.RenderError
TEMPLATE_PRESETS = icr.config.TEMPLATE_PRESETS


#============================================
def parse_field_values(pairs: list[str]) -> dict[str, str]:
	"""
	Parse repeated id=value arguments.

	Args:
		pairs: Strings like "name=John Doe".

	Returns:
		Mapping of field id to value.
	"""
	values: dict[str, str] = {}
	for pair in pairs:
		if "=" not in pair:
			raise icr.errors.ConfigurationError(f"Expected id=value, got {pair!r}")
		key, value = pair.split("=", 1)
		values[key.strip()] = value
	return values


#============================================
def resolve_template_path(args: argparse.Namespace, config: icr.geometry.TemplateConfig) -> pathlib.Path:
	"""
	Pick the template image path from args or the config.

	Args:
		args: Parsed argparse namespace.
		config: Loaded template config.

	Returns:
		Template image path.
	"""
	if args.template_path:
		return pathlib.Path(args.template_path)
	if not icr.geometry.is_config_complete(config):
		raise icr.errors.ConfigurationError("Config has no template image path; pass --template.")
	path = pathlib.Path(config.template_image_path)
	if not path.is_absolute():
		path = pathlib.Path(args.config_path).parent / path
	return path


#============================================
def load_config(args: argparse.Namespace) -> icr.geometry.TemplateConfig:
	config = icr.geometry.load_template_config(pathlib.Path(args.config_path))
	for issue in icr.geometry.find_layout_issues(config):
		print(f"Layout warning: {issue}")
	return config


#============================================
def run_defaults(args: argparse.Namespace) -> None:
	"""
	Write a default template config for an image or preset.

	Args:
		args: Parsed argparse namespace.
	"""
	if args.preset:
		config = icr.layout_defaults.config_for_preset(args.template_path or "", args.preset)
	elif args.template_path:
		image_bytes = pathlib.Path(args.template_path).read_bytes()
		config = icr.layout_defaults.config_for_upload(args.template_path, image_bytes)
	else:
		raise icr.errors.ConfigurationError("Pass --template or --preset.")
	dims = config.template_dimensions
	print(f"Template size: {dims.width:g}x{dims.height:g}")
	icr.geometry.save_template_config(config, pathlib.Path(args.output_path))
	print(f"Config written: {args.output_path}")


#============================================
def run_render(args: argparse.Namespace) -> None:
	"""
	Render a single card.

	Args:
		args: Parsed argparse namespace.
	"""
	config = load_config(args)
	template_bytes = resolve_template_path(args, config).read_bytes()
	photo_bytes = None
	if args.photo_path:
		photo_bytes = pathlib.Path(args.photo_path).read_bytes()
	values = parse_field_values(args.fields)
	output_path = pathlib.Path(args.output_path)
	start_time = time.perf_counter()
	if args.output_format == "pdf":
		data = icr.document.render_card_pdf(config, values, template_bytes, photo_bytes)
	else:
		data = icr.raster.render_card_jpeg(config, values, template_bytes, photo_bytes)
	output_path.write_bytes(data)
	print(f"Card written: {output_path} ({len(data)} bytes)")
	print("Timing: render={:.2f}s".format(time.perf_counter() - start_time))


#============================================
def run_preview(args: argparse.Namespace) -> None:
	"""
	Print preview overlay boxes as JSON.

	Args:
		args: Parsed argparse namespace.
	"""
	config = load_config(args)
	values = parse_field_values(args.fields)
	frame = icr.preview.render_preview(config, values, args.rendered_width)
	print(json.dumps(icr.preview.frame_to_dict(frame), indent=2))


#============================================
def run_batch(args: argparse.Namespace) -> None:
	"""
	Render cards for every row of a CSV file.

	Args:
		args: Parsed argparse namespace.
	"""
	config = load_config(args)
	template_bytes = resolve_template_path(args, config).read_bytes()
	rows = icr.batch.read_student_rows(pathlib.Path(args.data_path))
	print(f"Rows found: {len(rows)}")
	photos: dict[str, bytes] = {}
	if args.photos_path:
		photos = icr.batch.load_photo_archive(pathlib.Path(args.photos_path))
	print(f"Photos found: {len(photos)}")

	start_time = time.perf_counter()
	result = icr.batch.render_batch(
		config,
		rows,
		template_bytes,
		photos,
		output_format=args.output_format,
		require_photo=args.require_photo,
		workers=args.workers,
		timeout=args.timeout,
	)
	render_end = time.perf_counter()
	for message in result.messages:
		print(message)
	print(f"Cards rendered: {result.processed}")
	print(f"Rows skipped: {result.skipped}")

	output_dir = pathlib.Path(args.output_path)
	output_paths = icr.batch.write_batch_outputs(result, output_dir)
	combined_path = None
	if args.combined_path:
		combined_path = pathlib.Path(args.combined_path)
		combined_path.write_bytes(icr.batch.combine_batch(result))
		print(f"Combined PDF: {combined_path}")

	manifest_path = pathlib.Path(args.manifest_path or output_dir / "manifest.json")
	icr.batch.write_manifest(manifest_path, result, config, output_paths, combined_path)
	print(f"Manifest written: {manifest_path}")
	print(
		"Timing: render={:.2f}s total={:.2f}s".format(
			render_end - start_time,
			time.perf_counter() - start_time,
		)
	)


#============================================
def run_sample_csv(args: argparse.Namespace) -> None:
	"""
	Write a data-entry CSV for the config's fields.

	Args:
		args: Parsed argparse namespace.
	"""
	config = load_config(args)
	pathlib.Path(args.output_path).write_text(icr.batch.build_sample_csv(config), encoding="utf-8")
	print(f"Sample CSV written: {args.output_path}")


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Args:
		argv: Optional argument list, defaults to sys.argv.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Render ID cards from a template config.")
	parser.add_argument("-v", "--verbose", dest="verbose", action="count", default=0, help="Increase log output.")
	subparsers = parser.add_subparsers(dest="command", required=True)

	defaults_parser = subparsers.add_parser("defaults", help="Write a default config for a template.")
	defaults_parser.add_argument("-t", "--template", dest="template_path", default=None, help="Template image path.")
	defaults_parser.add_argument(
		"-p", "--preset", dest="preset", default=None, choices=sorted(TEMPLATE_PRESETS), help="Named card size."
	)
	defaults_parser.add_argument("-o", "--output", dest="output_path", required=True, help="Output config JSON.")
	defaults_parser.set_defaults(handler=run_defaults)

	def add_config_args(sub: argparse.ArgumentParser) -> None:
		input_group = sub.add_argument_group("Input")
		input_group.add_argument("-c", "--config", dest="config_path", required=True, help="Template config JSON.")
		input_group.add_argument("-t", "--template", dest="template_path", default=None, help="Template image path.")

	render_parser = subparsers.add_parser("render", help="Render one card.")
	add_config_args(render_parser)
	render_parser.add_argument("--photo", dest="photo_path", default=None, help="Student photo path.")
	render_parser.add_argument("-f", "--field", dest="fields", action="append", default=[], help="Field value as id=value.")
	render_output = render_parser.add_argument_group("Output")
	render_output.add_argument("-o", "--output", dest="output_path", required=True, help="Output card path.")
	render_output.add_argument("--format", dest="output_format", choices=("jpeg", "pdf"), default="jpeg")
	render_parser.set_defaults(handler=run_render)

	preview_parser = subparsers.add_parser("preview", help="Print preview overlay boxes as JSON.")
	add_config_args(preview_parser)
	preview_parser.add_argument("-f", "--field", dest="fields", action="append", default=[], help="Field value as id=value.")
	preview_parser.add_argument("-w", "--width", dest="rendered_width", type=float, default=None, help="Displayed width in px.")
	preview_parser.set_defaults(handler=run_preview)

	batch_parser = subparsers.add_parser("batch", help="Render one card per CSV row.")
	add_config_args(batch_parser)
	batch_parser.add_argument("-d", "--data", dest="data_path", required=True, help="Student CSV path.")
	batch_parser.add_argument("-z", "--photos", dest="photos_path", default=None, help="ZIP of photos named by roll number.")
	behavior_group = batch_parser.add_argument_group("Behavior")
	behavior_group.add_argument("-r", "--require-photo", dest="require_photo", action="store_true", help="Skip rows without a photo.")
	behavior_group.add_argument("-R", "--no-require-photo", dest="require_photo", action="store_false", help="Render rows without a photo.")
	behavior_group.add_argument("-j", "--workers", dest="workers", type=int, default=1, help="Cards rendered at once.")
	behavior_group.add_argument("--timeout", dest="timeout", type=float, default=None, help="Seconds allowed per card.")
	batch_output = batch_parser.add_argument_group("Output")
	batch_output.add_argument("-o", "--output", dest="output_path", required=True, help="Output directory.")
	batch_output.add_argument("--format", dest="output_format", choices=("jpeg", "pdf"), default="jpeg")
	batch_output.add_argument("--combined", dest="combined_path", default=None, help="Also write one combined PDF.")
	batch_output.add_argument("-m", "--manifest", dest="manifest_path", default=None, help="Output manifest JSON path.")
	batch_parser.set_defaults(handler=run_batch, require_photo=True)

	sample_parser = subparsers.add_parser("sample-csv", help="Write a data-entry CSV for the config's fields.")
	add_config_args(sample_parser)
	sample_parser.add_argument("-o", "--output", dest="output_path", required=True, help="Output CSV path.")
	sample_parser.set_defaults(handler=run_sample_csv)

	args = parser.parse_args(argv)
	if getattr(args, "combined_path", None) and args.output_format != "pdf":
		parser.error("--combined requires --format pdf")
	return args


#============================================
def main(argv: list[str] | None = None) -> int:
	"""
	Main entry point.

	Args:
		argv: Optional argument list.

	Returns:
		Process exit code.
	"""
	args = parse_args(argv)
	level = logging.WARNING
	if args.verbose == 1:
		level = logging.INFO
	elif args.verbose > 1:
		level = logging.DEBUG
	logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
	try:
		args.handler(args)
	except (RenderError, OSError) as error:
		print(f"Error: {error}", file=sys.stderr)
		return 1
	return 0
