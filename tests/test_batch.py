import io
import json
import pathlib
import threading
import time
import zipfile

import PIL.Image
import pypdf
import pytest

import idcard_renderer.batch as batch
import idcard_renderer.errors
import idcard_renderer.layout_defaults as layout_defaults


DecodeError = idcard_renderer.errors.DecodeError
EncodeError = idcard_renderer.errors.EncodeError


#============================================
def write_zip(path: pathlib.Path, entries: dict[str, bytes]) -> pathlib.Path:
	with zipfile.ZipFile(path, "w") as archive:
		for name, data in entries.items():
			archive.writestr(name, data)
	return path


#============================================
def student_rows() -> list[dict[str, str]]:
	return [
		{"name": "Asha Rao", "rollNo": "101"},
		{"name": "Ben Ito", "rollNo": "102"},
		{"name": "Cleo Park", "rollNo": "103"},
	]


#============================================
def test_read_rows_and_archive(tmp_path: pathlib.Path, photo_bytes: bytes) -> None:
	"""
	CSV rows are stripped and the archive is keyed by file stem.
	"""
	csv_path = tmp_path / "students.csv"
	csv_path.write_text("\ufeffname,rollNo\n Asha Rao , 101 \n,\nBen Ito,102\n", encoding="utf-8")
	rows = batch.read_student_rows(csv_path)
	assert rows == [{"name": "Asha Rao", "rollNo": "101"}, {"name": "Ben Ito", "rollNo": "102"}]

	zip_path = write_zip(
		tmp_path / "photos.zip",
		{
			"photos/101.jpg": photo_bytes,
			"__MACOSX/photos/._101.jpg": b"junk",
			".DS_Store": b"junk",
			"notes.txt": b"hello",
			"102.PNG": photo_bytes,
		},
	)
	photos = batch.load_photo_archive(zip_path)
	assert sorted(photos) == ["101", "102"]


#============================================
def test_row_key_variants() -> None:
	assert batch.row_key({"rollNo": "7"}) == "7"
	assert batch.row_key({"RollNo": " 8 "}) == "8"
	assert batch.row_key({"roll_no": "9"}) == "9"
	assert batch.row_key({"name": "x"}) == ""


#============================================
def test_missing_photo_is_skipped(basic_config, template_bytes: bytes, photo_bytes: bytes) -> None:
	"""
	Rows without a matching photo are counted as skipped.
	"""
	photos = {"101": photo_bytes, "103": photo_bytes}
	result = batch.render_batch(basic_config, student_rows(), template_bytes, photos)
	assert (result.processed, result.skipped) == (2, 1)
	assert [item.key for item in result.outputs] == ["101", "103"]
	assert "102" in result.messages[0]
	assert all(item.data[:3] == b"\xff\xd8\xff" for item in result.outputs)


#============================================
def test_undecodable_photo_still_renders(basic_config, template_bytes: bytes) -> None:
	photos = {"101": b"broken", "102": b"broken", "103": b"broken"}
	result = batch.render_batch(basic_config, student_rows(), template_bytes, photos)
	assert (result.processed, result.skipped) == (3, 0)


#============================================
def test_photos_optional(basic_config, template_bytes: bytes) -> None:
	result = batch.render_batch(basic_config, student_rows(), template_bytes, {}, require_photo=False)
	assert result.processed == 3


#============================================
def test_parallel_batch_keeps_row_order(basic_config, template_bytes: bytes, photo_bytes: bytes) -> None:
	rows = [{"name": f"Student {index}", "rollNo": str(index)} for index in range(1, 9)]
	photos = {row["rollNo"]: photo_bytes for row in rows}
	result = batch.render_batch(basic_config, rows, template_bytes, photos, workers=3)
	assert [item.index for item in result.outputs] == list(range(1, 9))


#============================================
def test_render_failures_are_counted(basic_config, template_bytes: bytes, monkeypatch) -> None:
	"""
	A card that fails to encode is skipped without stopping the batch.
	"""
	def flaky_renderer(config, row, template, photo):
		if row["rollNo"] == "102":
			raise EncodeError("disk full")
		return b"card"

	monkeypatch.setitem(batch.RENDERERS, "jpeg", flaky_renderer)
	result = batch.render_batch(basic_config, student_rows(), template_bytes, {}, require_photo=False)
	assert (result.processed, result.skipped) == (2, 1)
	assert "disk full" in result.messages[0]


#============================================
def test_bad_template_fails_whole_batch(basic_config) -> None:
	with pytest.raises(DecodeError):
		batch.render_batch(basic_config, student_rows(), b"garbage", {})


#============================================
def test_pdf_batch_writes_and_combines(
	tmp_path: pathlib.Path,
	basic_config,
	template_bytes: bytes,
	photo_bytes: bytes,
) -> None:
	"""
	PDF batches write one file per card, a combined file, and a manifest.
	"""
	photos = {"101": photo_bytes, "103": photo_bytes}
	result = batch.render_batch(basic_config, student_rows(), template_bytes, photos, output_format="pdf")
	paths = batch.write_batch_outputs(result, tmp_path / "out")
	assert [path.name for path in paths] == ["0001_101.pdf", "0003_103.pdf"]

	combined = batch.combine_batch(result)
	assert len(pypdf.PdfReader(io.BytesIO(combined)).pages) == 2
	combined_path = tmp_path / "out" / "cards.pdf"
	combined_path.write_bytes(combined)

	manifest_path = tmp_path / "out" / "manifest.json"
	batch.write_manifest(manifest_path, result, basic_config, paths, combined_path)
	manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
	assert manifest["processed"] == 2
	assert manifest["skipped"] == 1
	assert manifest["template"]["fields"] == ["name"]
	assert manifest["combined"].endswith("cards.pdf")


#============================================
def test_jpeg_batch_cannot_combine(basic_config, template_bytes: bytes) -> None:
	result = batch.render_batch(basic_config, student_rows(), template_bytes, {}, require_photo=False)
	with pytest.raises(idcard_renderer.errors.ConfigurationError):
		batch.combine_batch(result)


#============================================
def test_sample_csv_uses_field_ids() -> None:
	config = layout_defaults.build_default_config("t.png", 856, 540)
	lines = batch.build_sample_csv(config).splitlines()
	assert lines[0] == "name,rollNo,class,contact,address"
	assert lines[1] == "John Doe,101,10,Sample Data,Sample Data"


#============================================
def test_sanitize_token() -> None:
	assert batch.sanitize_token("A/B 12") == "A_B_12"
	assert batch.sanitize_token("///") == "card"


#============================================
def test_timed_out_card_does_not_hold_the_batch(basic_config, template_bytes: bytes, monkeypatch) -> None:
	"""
	A hung card is skipped after the timeout and later rows still render.
	"""
	release = threading.Event()

	def hanging_renderer(config, row, template, photo):
		if row["rollNo"] == "102":
			release.wait(10)
		return b"card"

	monkeypatch.setitem(batch.RENDERERS, "jpeg", hanging_renderer)
	start_time = time.monotonic()
	try:
		result = batch.render_batch(
			basic_config, student_rows(), template_bytes, {}, require_photo=False, timeout=0.3
		)
		elapsed = time.monotonic() - start_time
	finally:
		release.set()
	assert elapsed < 3.0
	assert (result.processed, result.skipped) == (2, 1)
	assert [item.key for item in result.outputs] == ["101", "103"]
	assert "timed out" in result.messages[0]


#============================================
def test_oversized_photo_does_not_stop_batch(
	basic_config,
	template_bytes: bytes,
	image_factory,
	monkeypatch,
) -> None:
	"""
	Photos over the decoder pixel limit are dropped and every row still renders.
	"""
	monkeypatch.setattr(PIL.Image, "MAX_IMAGE_PIXELS", 500_000)
	oversized = image_factory(1200, 1000, (220, 20, 20))
	photos = {"101": oversized, "102": oversized}
	result = batch.render_batch(basic_config, student_rows()[:2], template_bytes, photos)
	assert (result.processed, result.skipped) == (2, 0)
