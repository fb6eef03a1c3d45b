"""
Bulk card rendering from tabular student data and a photo archive.
"""

# Standard Library
import collections
import concurrent.futures
import csv
import dataclasses
import io
import json
import logging
import pathlib
import time
import zipfile

# local repo modules
import idcard_renderer as icr
import idcard_renderer.config
import idcard_renderer.document
import idcard_renderer.errors
import idcard_renderer.geometry
import idcard_renderer.imaging
import idcard_renderer.raster


RenderError = icr.errors.RenderError
TemplateConfig = icr.geometry.TemplateConfig

PHOTO_EXTENSIONS = icr.config.PHOTO_EXTENSIONS
ROLL_NUMBER_KEYS = icr.config.ROLL_NUMBER_KEYS
SAMPLE_VALUES = icr.config.SAMPLE_VALUES
SAMPLE_DEFAULT_VALUE = icr.config.SAMPLE_DEFAULT_VALUE

RENDERERS = {
	"jpeg": icr.raster.render_card_jpeg,
	"pdf": icr.document.render_card_pdf,
}
OUTPUT_SUFFIXES = {
	"jpeg": ".jpg",
	"pdf": ".pdf",
}

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class BatchJob:
	index: int
	key: str
	row: dict[str, str]
	photo: bytes | None


@dataclasses.dataclass(frozen=True)
class BatchItem:
	index: int
	key: str
	data: bytes


@dataclasses.dataclass
class BatchResult:
	output_format: str
	processed: int = 0
	skipped: int = 0
	outputs: list[BatchItem] = dataclasses.field(default_factory=list)
	messages: list[str] = dataclasses.field(default_factory=list)


#============================================
def sanitize_token(value: str) -> str:
	"""
	Sanitize a string for filenames.

	Args:
		value: Input string.

	Returns:
		Sanitized string.
	"""
	result: list[str] = []
	for char in value:
		if char.isalnum() or char in "-_":
			result.append(char)
		else:
			result.append("_")
	sanitized = "".join(result).strip("_")
	if not sanitized:
		return "card"
	return sanitized


#============================================
def read_student_rows(csv_path: pathlib.Path) -> list[dict[str, str]]:
	"""
	Read student rows from a CSV file.

	Args:
		csv_path: CSV path with a header row of field ids.

	Returns:
		List of rows with stripped keys and values; blank rows dropped.
	"""
	rows: list[dict[str, str]] = []
	with pathlib.Path(csv_path).open("r", encoding="utf-8-sig", newline="") as handle:
		for row in csv.DictReader(handle):
			cleaned = {
				(key or "").strip(): (value or "").strip()
				for key, value in row.items()
				if key is not None
			}
			if any(cleaned.values()):
				rows.append(cleaned)
	return rows


#============================================
def load_photo_archive(zip_path: pathlib.Path) -> dict[str, bytes]:
	"""
	Load student photos from a ZIP archive.

	Args:
		zip_path: ZIP path; entries are named by roll number.

	Returns:
		Photo bytes keyed by file stem.
	"""
	photos: dict[str, bytes] = {}
	with zipfile.ZipFile(zip_path, "r") as archive:
		for info in archive.infolist():
			if info.is_dir():
				continue
			name = pathlib.PurePosixPath(info.filename)
			if "__MACOSX" in name.parts or name.name.startswith("."):
				continue
			if name.suffix.lower() not in PHOTO_EXTENSIONS:
				continue
			if name.stem in photos:
				logger.warning("Duplicate photo for %r in archive, keeping %s", name.stem, info.filename)
			photos[name.stem] = archive.read(info)
	return photos


#============================================
def row_key(row: dict[str, str]) -> str:
	"""
	Find the roll number used to match a row to its photo.

	Args:
		row: Student row.

	Returns:
		Roll number, or "" when the row has none.
	"""
	for key in ROLL_NUMBER_KEYS:
		value = str(row.get(key) or "").strip()
		if value:
			return value
	return ""


#============================================
def _skip_row(result: BatchResult, message: str) -> None:
	logger.warning(message)
	result.messages.append(message)
	result.skipped += 1


#============================================
def _run_jobs(
	renderer,
	config: TemplateConfig,
	template_bytes: bytes,
	jobs: collections.deque,
	result: BatchResult,
	workers: int,
	timeout: float | None,
) -> collections.deque:
	"""
	Render queued jobs on one thread pool until they finish or a card times out.

	Args:
		renderer: Card render function.
		config: Template configuration.
		template_bytes: Encoded template image.
		jobs: Queue of BatchJob, consumed from the left.
		result: BatchResult updated in place.
		workers: Number of cards rendered at once.
		timeout: Seconds allowed per card, counted from submission.

	Returns:
		Jobs not yet submitted when a card timed out; empty otherwise.
	"""
	executor = concurrent.futures.ThreadPoolExecutor(max_workers=workers)
	in_flight: collections.deque = collections.deque()
	timed_out = False
	try:
		while (jobs and not timed_out) or in_flight:
			# at most one job per worker, so a submitted card starts right away
			while jobs and not timed_out and len(in_flight) < workers:
				job = jobs.popleft()
				future = executor.submit(renderer, config, job.row, template_bytes, job.photo)
				in_flight.append((job, future, time.monotonic()))
			job, future, submitted = in_flight.popleft()
			remaining = None
			if timeout is not None:
				remaining = max(0.0, submitted + timeout - time.monotonic())
			try:
				data = future.result(timeout=remaining)
			except concurrent.futures.TimeoutError:
				timed_out = True
				_skip_row(result, f"Row {job.index} ({job.key}): timed out after {timeout}s, skipped")
			except RenderError as error:
				_skip_row(result, f"Row {job.index} ({job.key}): {error}, skipped")
			else:
				result.outputs.append(BatchItem(index=job.index, key=job.key, data=data))
				result.processed += 1
				logger.debug("Rendered row %d (%s)", job.index, job.key)
	finally:
		# a hung card keeps its thread; the pool is abandoned instead of joined
		executor.shutdown(wait=not timed_out, cancel_futures=True)
	return jobs


#============================================
def render_batch(
	config: TemplateConfig,
	rows: list[dict[str, str]],
	template_bytes: bytes,
	photos: dict[str, bytes],
	output_format: str = "jpeg",
	require_photo: bool = True,
	workers: int = 1,
	timeout: float | None = None,
) -> BatchResult:
	"""
	Render one card per student row.

	Args:
		config: Template configuration.
		rows: Student rows keyed by field id.
		template_bytes: Encoded template image.
		photos: Photo bytes keyed by roll number.
		output_format: "jpeg" or "pdf".
		require_photo: Skip rows whose photo is missing.
		workers: Number of cards rendered at once.
		timeout: Seconds to wait for each card before counting it as failed.

	Returns:
		BatchResult; per-row failures are counted as skipped.
	"""
	if output_format not in RENDERERS:
		raise icr.errors.ConfigurationError(f"Unknown output format: {output_format!r}")
	icr.geometry.validate_template_config(config)
	icr.imaging.decode_image(template_bytes, "template")
	renderer = RENDERERS[output_format]
	result = BatchResult(output_format=output_format)

	jobs: collections.deque = collections.deque()
	for index, row in enumerate(rows, start=1):
		key = row_key(row)
		photo = photos.get(key) if key else None
		if photo is None and require_photo:
			_skip_row(result, f"Row {index}: photo not found for roll number {key!r}, skipped")
			continue
		jobs.append(BatchJob(index=index, key=key or f"row{index}", row=row, photo=photo))

	while jobs:
		jobs = _run_jobs(renderer, config, template_bytes, jobs, result, max(1, workers), timeout)
	result.outputs.sort(key=lambda item: item.index)

	logger.info("Batch finished: %d processed, %d skipped", result.processed, result.skipped)
	return result


#============================================
def write_batch_outputs(result: BatchResult, output_dir: pathlib.Path) -> list[pathlib.Path]:
	"""
	Write rendered cards to a directory.

	Args:
		result: BatchResult to write.
		output_dir: Output directory, created if missing.

	Returns:
		Written file paths in row order.
	"""
	output_dir = pathlib.Path(output_dir)
	output_dir.mkdir(parents=True, exist_ok=True)
	suffix = OUTPUT_SUFFIXES[result.output_format]
	paths: list[pathlib.Path] = []
	for item in result.outputs:
		path = output_dir / f"{item.index:04d}_{sanitize_token(item.key)}{suffix}"
		path.write_bytes(item.data)
		paths.append(path)
	return paths


#============================================
def combine_batch(result: BatchResult) -> bytes:
	"""
	Merge a PDF batch into one document.

	Args:
		result: BatchResult rendered as "pdf".

	Returns:
		Combined PDF bytes.
	"""
	if result.output_format != "pdf":
		raise icr.errors.ConfigurationError("Only PDF batches can be combined")
	return icr.document.combine_documents([item.data for item in result.outputs])


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	result: BatchResult,
	config: TemplateConfig,
	output_paths: list[pathlib.Path],
	combined_path: pathlib.Path | None = None,
) -> None:
	"""
	Write a manifest JSON file.

	Args:
		manifest_path: Output path.
		result: BatchResult summarized.
		config: Template configuration used.
		output_paths: Written card paths.
		combined_path: Combined PDF path, if written.
	"""
	data = {
		"format": result.output_format,
		"processed": result.processed,
		"skipped": result.skipped,
		"messages": result.messages,
		"outputs": [str(path) for path in output_paths],
		"combined": str(combined_path) if combined_path is not None else None,
		"template": {
			"path": config.template_image_path,
			"width": config.template_dimensions.width,
			"height": config.template_dimensions.height,
			"fields": [field.id for field in config.text_fields],
		},
	}
	with pathlib.Path(manifest_path).open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True)


#============================================
def build_sample_csv(config: TemplateConfig) -> str:
	"""
	Build a data-entry CSV with the template's field ids as headers.

	Args:
		config: Template configuration.

	Returns:
		CSV text with a header row and one sample row.
	"""
	headers = [field.id for field in config.text_fields]
	sample = [SAMPLE_VALUES.get(field_id.lower(), SAMPLE_DEFAULT_VALUE) for field_id in headers]
	buffer = io.StringIO()
	writer = csv.writer(buffer, lineterminator="\n")
	writer.writerow(headers)
	writer.writerow(sample)
	return buffer.getvalue()
