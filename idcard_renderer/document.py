"""
Document renderer: the card as a single-page PDF in bottom-left-origin coordinates.
"""

# Standard Library
import io
import logging

# PIP3 modules
import pypdf
import pypdf.errors
import reportlab.lib.utils
import reportlab.pdfgen.canvas

# local repo modules
import idcard_renderer as icr
import idcard_renderer.errors
import idcard_renderer.geometry
import idcard_renderer.imaging
import idcard_renderer.resolver
import idcard_renderer.text_layout


EncodeError = icr.errors.EncodeError
TemplateConfig = icr.geometry.TemplateConfig
RenderInput = icr.geometry.RenderInput
LinePlacement = icr.text_layout.LinePlacement
CardPlacements = icr.text_layout.CardPlacements

logger = logging.getLogger(__name__)


#============================================
def compute_document_placements(config: TemplateConfig, data: RenderInput) -> CardPlacements:
	"""
	Compute where the document renderer draws the photo and each text line.

	Args:
		config: Template configuration.
		data: Per-student values.

	Returns:
		CardPlacements in bottom-left-origin page points. Line y values are
		baselines.
	"""
	layout = icr.resolver.resolve(config, "document")
	photo = layout.photo
	photo_box = (photo.absolute_x, photo.absolute_y, photo.absolute_width, photo.absolute_height)

	lines: list[LinePlacement] = []
	for field, position in zip(config.text_fields, layout.text):
		wrapped = icr.text_layout.wrap_text(data.value_for(field.id), field)
		leading = icr.text_layout.line_height(position.font_size)
		for index, line in enumerate(wrapped):
			offset = 0.0
			if position.absolute_width is not None:
				line_width = icr.text_layout.measure_text(line, field.font_weight, position.font_size)
				offset = icr.text_layout.align_offset(position.absolute_width, line_width, field.text_align)
			lines.append(
				LinePlacement(
					field_id=field.id,
					text=line,
					field_x=position.absolute_x,
					field_y=position.absolute_y,
					x=position.absolute_x + offset,
					y=position.absolute_y - index * leading,
					font_size=position.font_size,
				)
			)
	return CardPlacements(
		width=layout.template_width,
		height=layout.template_height,
		photo_box=photo_box,
		lines=tuple(lines),
	)


#============================================
def draw_text_lines(
	pdf: reportlab.pdfgen.canvas.Canvas,
	config: TemplateConfig,
	placements: CardPlacements,
) -> None:
	"""
	Draw placed text lines onto the PDF canvas.

	Args:
		pdf: ReportLab canvas.
		config: Template configuration.
		placements: Document placements.
	"""
	fields = {field.id: field for field in config.text_fields}
	for line in placements.lines:
		field = fields[line.field_id]
		font_name = icr.text_layout.document_font_name(field.font_weight)
		pdf.setFont(font_name, line.font_size)
		color = icr.text_layout.parse_hex_color(field.color)
		pdf.setFillColorRGB(color[0], color[1], color[2])
		pdf.drawString(line.x, line.y, line.text)


#============================================
def render_card_pdf(
	config: TemplateConfig,
	data,
	template_bytes: bytes,
	photo_bytes: bytes | None = None,
) -> bytes:
	"""
	Render one card to a single-page PDF.

	Args:
		config: Template configuration.
		data: RenderInput or mapping of field id to value.
		template_bytes: Encoded template image.
		photo_bytes: Optional encoded student photo.

	Returns:
		PDF bytes with a page sized to the configured template dimensions.
	"""
	data = icr.geometry.coerce_render_input(data, photo_bytes)
	icr.geometry.validate_template_config(config)
	template = icr.imaging.decode_image(template_bytes, "template")
	icr.imaging.check_template_size(config, template)
	placements = compute_document_placements(config, data)
	page_width = placements.width
	page_height = placements.height

	buffer = io.BytesIO()
	pdf = reportlab.pdfgen.canvas.Canvas(buffer, pagesize=(page_width, page_height))
	pdf.drawImage(
		reportlab.lib.utils.ImageReader(template),
		0,
		0,
		width=page_width,
		height=page_height,
		mask=None,
		preserveAspectRatio=False,
	)

	photo = icr.imaging.decode_photo(data.photo)
	if photo is not None:
		x, y, width, height = placements.photo_box
		pdf.drawImage(
			reportlab.lib.utils.ImageReader(photo),
			x,
			y,
			width=width,
			height=height,
			mask=None,
			preserveAspectRatio=False,
			anchor="sw",
		)

	draw_text_lines(pdf, config, placements)
	try:
		pdf.showPage()
		pdf.save()
	except (OSError, ValueError, TypeError) as error:
		raise EncodeError(f"PDF encoding failed: {error}") from error
	return buffer.getvalue()


#============================================
def combine_documents(documents: list[bytes]) -> bytes:
	"""
	Merge single-card PDFs into one multi-page PDF.

	Args:
		documents: PDF byte strings, in page order.

	Returns:
		Combined PDF bytes.
	"""
	writer = pypdf.PdfWriter()
	for document in documents:
		try:
			reader = pypdf.PdfReader(io.BytesIO(document))
		except pypdf.errors.PdfReadError as error:
			raise icr.errors.DecodeError(f"Cannot read card PDF: {error}") from error
		for page in reader.pages:
			writer.add_page(page)
	buffer = io.BytesIO()
	try:
		writer.write(buffer)
	except (OSError, ValueError) as error:
		raise EncodeError(f"Combined PDF encoding failed: {error}") from error
	logger.info("Combined %d card documents", len(documents))
	return buffer.getvalue()
