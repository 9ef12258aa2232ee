"""
ReportLab implementation of the `PageCanvas` capability.

Translates the template's millimetre, top-left coordinates into ReportLab
points measured from the bottom-left corner of an A4 page. Documents are
written with `invariant=1` so identical records produce identical bytes.
"""

from __future__ import annotations

from io import BytesIO
from typing import Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from farm_connect.documents.base import Align, FontStyle

FONTS = {
    "normal": "Helvetica",
    "bold": "Helvetica-Bold",
    "italic": "Helvetica-Oblique",
}
TABLE_LEFT = 14.0
ROW_PADDING = 2.5
STRIPE = colors.HexColor("#F5F5F5")
GRID = colors.HexColor("#D0D0D0")


class ReportlabCanvas:
    def __init__(self, title: str = "", pagesize: Tuple[float, float] = A4) -> None:
        self._buffer = BytesIO()
        self._width_pt, self._height_pt = pagesize
        self._canvas = canvas.Canvas(self._buffer, pagesize=pagesize, invariant=1)
        self._canvas.setAuthor("Farm Connect")
        if title:
            self._canvas.setTitle(title)
        self.page_width = self._width_pt / mm
        self.page_height = self._height_pt / mm

    def _y(self, y: float) -> float:
        return self._height_pt - y * mm

    def text(
        self,
        value: str,
        x: float,
        y: float,
        *,
        size: float,
        style: FontStyle = "normal",
        align: Align = "left",
    ) -> None:
        c = self._canvas
        c.saveState()
        c.setFont(FONTS[style], size)
        if align == "center":
            c.drawCentredString(x * mm, self._y(y), value)
        else:
            c.drawString(x * mm, self._y(y), value)
        c.restoreState()

    def rule(self, x1: float, y: float, x2: float, width: float = 0.5) -> None:
        c = self._canvas
        c.saveState()
        c.setLineWidth(width * mm)
        c.line(x1 * mm, self._y(y), x2 * mm, self._y(y))
        c.restoreState()

    def _rect(self, x: float, top: float, width: float, height: float, fill) -> None:
        c = self._canvas
        c.saveState()
        c.setFillColor(fill)
        c.setStrokeColor(GRID)
        c.setLineWidth(0.2 * mm)
        c.rect(x * mm, self._y(top + height), width * mm, height * mm, fill=1, stroke=1)
        c.restoreState()

    def table(
        self,
        rows: Sequence[Tuple[str, str]],
        start_y: float,
        *,
        size: float,
        column_widths: Tuple[float, float],
    ) -> float:
        row_height = size / mm + 2 * ROW_PADDING
        y = start_y
        for index, row in enumerate(rows):
            fill = STRIPE if index % 2 == 0 else colors.white
            x = TABLE_LEFT
            for column, (value, width) in enumerate(zip(row, column_widths)):
                self._rect(x, y, width, row_height, fill)
                self.text(
                    value,
                    x + ROW_PADDING,
                    y + row_height - ROW_PADDING - 0.5,
                    size=size,
                    style="bold" if column == 0 else "normal",
                )
                x += width
            y += row_height
        return y

    def finish(self) -> bytes:
        self._canvas.showPage()
        self._canvas.save()
        return self._buffer.getvalue()


__all__ = ["ReportlabCanvas"]
