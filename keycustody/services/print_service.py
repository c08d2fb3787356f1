# =======================================================================================
# keycustody/services/print_service.py - Barcode Label Sheets
# =======================================================================================
import io
from typing import Iterable
from reportlab.graphics.barcode import code128
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from ..models.schemas import KeyRecord

# A4 sheet, 4 columns of 40 x 25 mm labels
PAGE_MARGIN = 10 * mm
LABEL_WIDTH = 40 * mm
LABEL_HEIGHT = 25 * mm
COLUMNS = 4
COLUMN_GAP = 5 * mm
ROW_GAP = 3 * mm
BAR_HEIGHT = 16 * mm
MAX_BAR_WIDTH = 0.35 * mm
LABEL_FONT = "Courier"
LABEL_FONT_SIZE = 7


class PrintService:
    """Renders printable CODE128 label sheets for key records."""

    def rows_per_page(self) -> int:
        _, height = A4
        usable = height - 2 * PAGE_MARGIN + ROW_GAP
        return max(1, int(usable // (LABEL_HEIGHT + ROW_GAP)))

    def labels_per_page(self) -> int:
        return COLUMNS * self.rows_per_page()

    def render_labels(self, records: Iterable[KeyRecord]) -> bytes:
        """One label per record: barcode, barcode text and key count."""
        buffer = io.BytesIO()
        c = canvas.Canvas(buffer, pagesize=A4)
        c.setTitle("Print Barcodes")
        width, height = A4

        grid_width = COLUMNS * LABEL_WIDTH + (COLUMNS - 1) * COLUMN_GAP
        left = (width - grid_width) / 2
        per_page = self.labels_per_page()

        for index, record in enumerate(records):
            slot = index % per_page
            if index and slot == 0:
                c.showPage()

            column = slot % COLUMNS
            row = slot // COLUMNS
            x = left + column * (LABEL_WIDTH + COLUMN_GAP)
            top = height - PAGE_MARGIN - row * (LABEL_HEIGHT + ROW_GAP)
            self._draw_label(c, record, x, top)

        c.save()
        return buffer.getvalue()

    def _draw_label(self, c: canvas.Canvas, record: KeyRecord, x: float, top: float):
        # scale the module width so long codes still fit the label
        unit_width = code128.Code128(record.barcodeCode, barWidth=1, quiet=0).width
        bar_width = min(MAX_BAR_WIDTH, LABEL_WIDTH / unit_width)
        barcode = code128.Code128(
            record.barcodeCode, barWidth=bar_width, barHeight=BAR_HEIGHT, quiet=0
        )
        barcode.drawOn(c, x + (LABEL_WIDTH - barcode.width) / 2, top - BAR_HEIGHT)

        c.setFont(LABEL_FONT, LABEL_FONT_SIZE)
        centre = x + LABEL_WIDTH / 2
        c.drawCentredString(centre, top - BAR_HEIGHT - 3 * mm, record.barcodeCode)
        c.drawCentredString(centre, top - BAR_HEIGHT - 6 * mm, f"No of keys: {record.noOfKeys}")
