import dataclasses
import io

import fitz
import pypdf
import pytest

import idcard_renderer.errors
import idcard_renderer.document as document
import idcard_renderer.geometry as geometry
import idcard_renderer.raster as raster


DecodeError = idcard_renderer.errors.DecodeError
MismatchWarning = idcard_renderer.errors.MismatchWarning


#============================================
def text_spans(pdf_bytes: bytes) -> list[dict]:
	"""
	Collect text spans from the first page of a PDF.
	"""
	with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
		page = doc[0]
		spans: list[dict] = []
		for block in page.get_text("dict")["blocks"]:
			for line in block.get("lines", []):
				spans.extend(line.get("spans", []))
		return spans


#============================================
def test_page_uses_configured_dimensions(basic_config, template_bytes: bytes) -> None:
	pdf_bytes = document.render_card_pdf(basic_config, {"name": "John Doe"}, template_bytes)
	assert pdf_bytes.startswith(b"%PDF")
	reader = pypdf.PdfReader(io.BytesIO(pdf_bytes))
	assert len(reader.pages) == 1
	box = reader.pages[0].mediabox
	assert float(box.width) == pytest.approx(856)
	assert float(box.height) == pytest.approx(540)


#============================================
def test_name_baseline_is_flipped(basic_config, template_bytes: bytes) -> None:
	"""
	The bold name is drawn with its baseline at y=360 from the bottom.
	"""
	pdf_bytes = document.render_card_pdf(basic_config, {"name": "John Doe"}, template_bytes)
	spans = [span for span in text_spans(pdf_bytes) if span["text"].strip()]
	assert len(spans) == 1
	span = spans[0]
	assert span["text"] == "John Doe"
	assert "Bold" in span["font"]
	assert span["size"] == pytest.approx(18, abs=0.1)
	origin_x, origin_y = span["origin"]
	assert origin_x == pytest.approx(274, abs=0.5)
	assert origin_y == pytest.approx(540 - 360, abs=0.5)


#============================================
def test_empty_data_draws_no_text(basic_config, template_bytes: bytes) -> None:
	pdf_bytes = document.render_card_pdf(basic_config, {}, template_bytes)
	assert [span for span in text_spans(pdf_bytes) if span["text"].strip()] == []


#============================================
def test_text_color_is_applied(basic_config, template_bytes: bytes) -> None:
	field = dataclasses.replace(basic_config.text_fields[0], color="#1E3A8A")
	config = dataclasses.replace(basic_config, text_fields=(field,))
	spans = text_spans(document.render_card_pdf(config, {"name": "Jane"}, template_bytes))
	color = spans[0]["color"]
	assert abs((color >> 16) - 0x1E) <= 1
	assert abs(((color >> 8) & 0xFF) - 0x3A) <= 1
	assert abs((color & 0xFF) - 0x8A) <= 1


#============================================
def test_photo_fills_its_box(basic_config, template_bytes: bytes, photo_bytes: bytes) -> None:
	"""
	The photo is drawn into the flipped box and shows up in a raster of the page.
	"""
	pdf_bytes = document.render_card_pdf(basic_config, {}, template_bytes, photo_bytes)
	with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
		pixmap = doc[0].get_pixmap()
		assert (pixmap.width, pixmap.height) == (856, 540)
		red, green, blue = pixmap.pixel(153, 216)[:3]
		assert red > 180 and green < 80 and blue < 80
		assert pixmap.pixel(153, 100)[1] > 200
		assert pixmap.pixel(153, 320)[1] > 200


#============================================
def test_mismatched_template_is_stretched(basic_config, image_factory) -> None:
	"""
	The page keeps configured dimensions even when the image differs.
	"""
	template = image_factory(1000, 600, (255, 255, 255))
	with pytest.warns(MismatchWarning):
		pdf_bytes = document.render_card_pdf(basic_config, {"name": "John Doe"}, template)
	box = pypdf.PdfReader(io.BytesIO(pdf_bytes)).pages[0].mediabox
	assert (float(box.width), float(box.height)) == pytest.approx((856, 540))


#============================================
def test_wrapped_lines_step_down(basic_config) -> None:
	"""
	Each wrapped line sits one line height below the previous baseline.
	"""
	address = geometry.TextFieldSpec(
		id="address", name="Address", x=274, y=378, font_size=14, width=120, lines=2
	)
	config = dataclasses.replace(basic_config, text_fields=basic_config.text_fields + (address,))
	data = geometry.coerce_render_input({"address": "12 Long Street Name Town"})
	lines = [
		line for line in document.compute_document_placements(config, data).lines
		if line.field_id == "address"
	]
	assert len(lines) >= 2
	assert lines[0].y == pytest.approx(540 - 378 - 14)
	assert lines[0].y - lines[1].y == pytest.approx(14 * 1.2)


#============================================
def test_renderers_agree_in_normalized_space(basic_config) -> None:
	"""
	Raster and document placements match once normalized and flipped.
	"""
	data = geometry.coerce_render_input({"name": "John Doe"})
	surface = raster.compute_raster_placements(basic_config, data, (1000, 600))
	page = document.compute_document_placements(basic_config, data)

	x, y, width, height = surface.photo_box
	page_x, page_y, page_width, page_height = page.photo_box
	assert x / 1000 == pytest.approx(page_x / 856)
	assert width / 1000 == pytest.approx(page_width / 856)
	assert height / 600 == pytest.approx(page_height / 540)
	assert y / 600 == pytest.approx((540 - page_y - page_height) / 540)

	raster_line = surface.lines[0]
	page_line = page.lines[0]
	assert raster_line.text == page_line.text
	assert raster_line.x / 1000 == pytest.approx(page_line.x / 856)
	top_from_page = 540 - page_line.y - page_line.font_size
	assert raster_line.y / 600 == pytest.approx(top_from_page / 540)


#============================================
def test_combine_documents(basic_config, template_bytes: bytes) -> None:
	cards = [
		document.render_card_pdf(basic_config, {"name": name}, template_bytes)
		for name in ("A", "B", "C")
	]
	combined = document.combine_documents(cards)
	assert len(pypdf.PdfReader(io.BytesIO(combined)).pages) == 3
	with pytest.raises(DecodeError):
		document.combine_documents([b"not a pdf"])
