import io

from django.conf import settings
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

MARGIN = 40
LETTERHEAD_SPACE = 110
ROW_FONT = ("Helvetica", 9)


class ReportCanvas:
    """Keeps the cursor and starts new pages when a block would not fit."""

    def __init__(self, buffer, letterhead):
        self.pdf = canvas.Canvas(buffer, pagesize=A4)
        self.width, self.height = A4
        self.letterhead = letterhead
        self.page_number = 0
        self.new_page()

    def new_page(self):
        if self.page_number:
            self.pdf.showPage()
        self.page_number += 1
        if self.letterhead:
            self.pdf.setFont("Helvetica-Bold", 14)
            self.pdf.drawCentredString(self.width / 2, self.height - 40, settings.LABDESK_LAB_NAME)
            self.pdf.setFont("Helvetica", 8)
            self.pdf.drawCentredString(self.width / 2, self.height - 54, settings.LABDESK_LAB_ADDRESS)
            self.pdf.line(MARGIN, self.height - 62, self.width - MARGIN, self.height - 62)
            self.y = self.height - 80
        else:
            # pre-printed stationery carries its own header
            self.y = self.height - LETTERHEAD_SPACE
        self.pdf.setFont("Helvetica", 7)
        self.pdf.drawRightString(self.width - MARGIN, 20, f"Page {self.page_number}")

    def ensure(self, needed):
        if self.y - needed < 50:
            self.new_page()

    def text(self, value, font=ROW_FONT, x=MARGIN, step=14):
        self.ensure(step)
        self.pdf.setFont(*font)
        self.pdf.drawString(x, self.y, str(value))
        self.y -= step

    def centred(self, value, font=("Helvetica-Bold", 12), step=18):
        self.ensure(step)
        self.pdf.setFont(*font)
        self.pdf.drawCentredString(self.width / 2, self.y, str(value))
        self.y -= step

    def wrapped(self, value, width, font=ROW_FONT, x=MARGIN, step=12):
        for line in simpleSplit(str(value), font[0], font[1], width) or [""]:
            self.text(line, font=font, x=x, step=step)

    def row(self, cells, widths, font=ROW_FONT, step=12):
        wrapped = [simpleSplit(str(cell), font[0], font[1], w - 4) or [""] for cell, w in zip(cells, widths)]
        height = max(len(lines) for lines in wrapped) * step
        self.ensure(height + 4)
        self.pdf.setFont(*font)
        x = MARGIN
        for lines, w in zip(wrapped, widths):
            for offset, line in enumerate(lines):
                self.pdf.drawString(x + 2, self.y - offset * step, line)
            x += w
        self.y -= height + 4

    def save(self):
        self.pdf.save()


def render_report_pdf(report, letterhead=True):
    """Render a normalized test report to PDF bytes."""
    buffer = io.BytesIO()
    doc = ReportCanvas(buffer, letterhead)
    usable = doc.width - 2 * MARGIN

    if report["nabl"]:
        doc.text("NABL ACCREDITED", font=("Helvetica-Bold", 9))
    doc.text(f"LRN: {report['lrn']}", font=("Helvetica-Bold", 10))
    doc.centred("TEST REPORT")
    ids = []
    if report["ulr"]:
        ids.append(f"ULR: {report['ulr']}")
    if report["brn"]:
        ids.append(f"BRN: {report['brn']}")
    if ids:
        doc.text("    ".join(ids))
    if report["report_date"]:
        doc.text(f"Report Date: {report['report_date']}")

    if report["report_status"] > 6:
        customer = report["customer"]
        doc.y -= 4
        doc.text("Issued To:", font=("Helvetica-Bold", 9))
        doc.wrapped(customer["name"], usable)
        if customer["address"]:
            doc.wrapped(customer["address"], usable)
        if customer["contact_person"]:
            doc.text(f"Contact Person: {customer['contact_person']}")

    if report["product"]:
        doc.text(f"Sample: {report['product']}")
    doc.y -= 6

    headers = ["S.NO", "PARAMETER", "UNIT", "RESULTS", "TEST METHOD"]
    widths = [0.07, 0.33, 0.1, 0.15, 0.35]
    if report["has_specs"]:
        headers.append("SPECIFICATIONS")
        widths = [0.07, 0.27, 0.08, 0.13, 0.25, 0.2]
    widths = [usable * w for w in widths]
    doc.row(headers, widths, font=("Helvetica-Bold", 8))
    for number, result in enumerate(report["results"], start=1):
        cells = [number, result["parameter"], result["unit"], result["result"], result["method"]]
        if report["has_specs"]:
            cells.append(result["specification"] or "-")
        doc.row(cells, widths)

    if report["remarks"]:
        doc.y -= 6
        doc.text("Remarks:", font=("Helvetica-Bold", 9))
        for line in report["remarks"]:
            doc.wrapped(line, usable)

    doc.y -= 10
    doc.centred("**End of Report**", font=("Helvetica-Bold", 9), step=30)

    signatories = report["signatories"]
    if signatories:
        doc.ensure(40)
        column = usable / len(signatories)
        for index, signer in enumerate(signatories):
            x = MARGIN + index * column
            doc.pdf.setFont("Helvetica-Bold", 9)
            doc.pdf.drawString(x, doc.y, signer["name"])
            doc.pdf.setFont("Helvetica", 8)
            doc.pdf.drawString(x, doc.y - 12, signer["title"])
        doc.y -= 30

    doc.save()
    buffer.seek(0)
    return buffer.getvalue()
