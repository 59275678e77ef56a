"""Fixed single-page invoice layout (points, top-left origin, US Letter)."""

from __future__ import annotations

PAGE_W = 612
PAGE_H = 792

MARGIN = 50
CONTENT_W = PAGE_W - 2 * MARGIN
RIGHT_EDGE = PAGE_W - MARGIN

# Header
TITLE_Y = 74.0
NUMBER_Y = 72.0

# Metadata box: dates and status on the left, customer block on the right
INFO_BOX_Y = 94.0
INFO_BOX_H = 90.0
INFO_TEXT_X = MARGIN + 10
INFO_FIRST_LINE_Y = INFO_BOX_Y + 20
INFO_LINE_H = 20.0

BILL_TO_X = RIGHT_EDGE - 200
BILL_TO_LABEL_Y = INFO_BOX_Y + 20
BILL_TO_NAME_Y = INFO_BOX_Y + 38
BILL_TO_EMAIL_Y = INFO_BOX_Y + 52
BILL_TO_ADDR_Y = INFO_BOX_Y + 66
ADDR_LINE_H = 13.0
ADDRESS_WRAP_CHARS = 30

# Optional description block
DESCRIPTION_LABEL_Y = INFO_BOX_Y + INFO_BOX_H + 24
DESCRIPTION_TEXT_Y = DESCRIPTION_LABEL_Y + 16
DESCRIPTION_LINE_H = 14.0
DESCRIPTION_MAX_LINES = 3

# Item table
TABLE_Y = INFO_BOX_Y + INFO_BOX_H + 20
TABLE_Y_WITH_DESCRIPTION = 272.0
TABLE_ROW_H = 25.0
TABLE_TEXT_OFFSET_X = 5.0
TABLE_TEXT_OFFSET_Y = 16.0
TABLE_COLUMN_WIDTHS = (200, 80, 100, 100)  # Description, Qty, Unit Price, Total
ITEM_DESCRIPTION_MAX_CHARS = 35
BAR_RADIUS = 4.0

# Total box
TOTAL_BOX_GAP = 20.0
TOTAL_BOX_W = 200.0
TOTAL_BOX_H = 40.0
TOTAL_BOX_X = RIGHT_EDGE - TOTAL_BOX_W
TOTAL_LABEL_OFFSET_Y = 16.0
TOTAL_VALUE_OFFSET_Y = 32.0
BOX_RADIUS = 4.0

# Footer
FOOTER_Y = float(PAGE_H - MARGIN)
FOOTER_GAP = 20.0

# Colors (RGB)
COLOR_TITLE = (58, 58, 58)          # #3A3A3A
COLOR_INVOICE_NUM = (149, 149, 149) # #959595
COLOR_LABEL = (105, 105, 105)       # #696969
COLOR_TEXT = (80, 80, 80)           # #505050
COLOR_BAR = (58, 58, 58)            # #3A3A3A
COLOR_BAR_TEXT = (234, 234, 234)    # #EAEAEA
COLOR_BOX = (240, 240, 240)         # #F0F0F0
COLOR_BORDER = (211, 211, 211)      # #D3D3D3
COLOR_ROW_ALT = (245, 245, 245)     # #F5F5F5
COLOR_TOTAL_BOX = (255, 255, 224)   # #FFFFE0
COLOR_FOOTER = (128, 128, 128)      # #808080

FONT_SIZE_TITLE = 24
FONT_SIZE_HEADER = 12
FONT_SIZE_NORMAL = 10
FONT_SIZE_SMALL = 8

FOOTER_THANKS = "Thank you for your business!"
