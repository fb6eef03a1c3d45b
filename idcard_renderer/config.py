"""
Shared configuration and constants.
"""

SCHEMA_VERSION = 2

# Version 1 records were always authored against this fixed canvas.
LEGACY_TEMPLATE_WIDTH = 856
LEGACY_TEMPLATE_HEIGHT = 540

LINE_HEIGHT_FACTOR = 1.2
JPEG_QUALITY = 95
PERCENT = 100.0

DEFAULT_FONT_REGULAR = "Helvetica"
DEFAULT_FONT_BOLD = "Helvetica-Bold"
DEFAULT_FONT_FAMILY = "Arial, sans-serif"
DEFAULT_TEXT_COLOR = "#000000"
DEFAULT_TEXT_ALIGN = "left"
DEFAULT_FONT_WEIGHT = "normal"

FONT_WEIGHTS = ("normal", "bold")
TEXT_ALIGNS = ("left", "center", "right")
RENDER_TARGETS = ("preview", "document")

PHOTO_PLACEHOLDER_LABEL = "Photo"
PHOTO_EXTENSIONS = (".jpg", ".jpeg", ".png")
ROLL_NUMBER_KEYS = ("rollNo", "RollNo", "roll_no")

# TrueType files tried for each family token, (regular, bold).
FONT_FILES = {
	"arial": ("arial.ttf", "arialbd.ttf"),
	"helvetica": ("Helvetica.ttf", "Helvetica-Bold.ttf"),
	"times new roman": ("times.ttf", "timesbd.ttf"),
	"georgia": ("georgia.ttf", "georgiab.ttf"),
	"verdana": ("verdana.ttf", "verdanab.ttf"),
	"geneva": ("Geneva.ttf", "Geneva.ttf"),
	"sans-serif": ("DejaVuSans.ttf", "DejaVuSans-Bold.ttf"),
	"serif": ("DejaVuSerif.ttf", "DejaVuSerif-Bold.ttf"),
}
FALLBACK_FONT_FILES = ("DejaVuSans.ttf", "DejaVuSans-Bold.ttf")

# Default layout, as fractions of the template size.
DEFAULT_PHOTO_BOX = (0.08, 0.25, 0.20, 0.30)
DEFAULT_TEXT_X = 0.32
DEFAULT_ADDRESS_WIDTH = 0.60
DEFAULT_ADDRESS_LINES = 2
# (id, label, y fraction, weight, minimum size, size fraction of width)
DEFAULT_TEXT_FIELDS = (
	("name", "Full Name", 0.30, "bold", 18.0, 0.021),
	("rollNo", "Roll No", 0.40, "bold", 16.0, 0.0187),
	("class", "Class", 0.50, "normal", 16.0, 0.0187),
	("contact", "Contact", 0.60, "normal", 14.0, 0.0164),
	("address", "Address", 0.70, "normal", 14.0, 0.0164),
)

TEMPLATE_PRESETS = {
	"STANDARD_ID": (856, 540, "Standard ID Card (856x540)"),
	"CREDIT_CARD": (1056, 672, "Credit Card Style (1056x672)"),
	"PASSPORT": (1250, 884, "Passport Style (1250x884)"),
	"BUSINESS_CARD": (1050, 600, "Business Card (1050x600)"),
}

PROFESSIONAL_FONTS = {
	"ARIAL": ("Arial, sans-serif", "Arial"),
	"HELVETICA": ("Helvetica, Arial, sans-serif", "Helvetica"),
	"TIMES_NEW_ROMAN": ("Times New Roman, serif", "Times New Roman"),
	"GEORGIA": ("Georgia, serif", "Georgia"),
	"VERDANA": ("Verdana, Geneva, sans-serif", "Verdana"),
}

PROFESSIONAL_COLORS = {
	"BLACK": ("#000000", "Black"),
	"DARK_GRAY": ("#333333", "Dark Gray"),
	"NAVY_BLUE": ("#1E3A8A", "Navy Blue"),
	"DARK_GREEN": ("#166534", "Dark Green"),
	"BURGUNDY": ("#7F1D1D", "Burgundy"),
	"DARK_BROWN": ("#78350F", "Dark Brown"),
	"CHARCOAL": ("#374151", "Charcoal"),
	"DARK_SLATE": ("#475569", "Dark Slate"),
	"WHITE": ("#FFFFFF", "White"),
}

SAMPLE_VALUES = {
	"name": "John Doe",
	"rollno": "101",
	"roll_no": "101",
	"class": "10",
	"section": "A",
	"department": "Computer Science",
	"year": "2024",
}
SAMPLE_DEFAULT_VALUE = "Sample Data"
