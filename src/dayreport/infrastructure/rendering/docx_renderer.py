from __future__ import annotations

import io
import re
import zipfile
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from docx import Document
from docx.enum.text import WD_PARAGRAPH_ALIGNMENT
from docx.shared import Pt

from src.dayreport.application.renderer import cell_text, table_columns

_FIXED_TIMESTAMP = datetime(2000, 1, 1)
_ZIP_DATE_TIME = (1980, 1, 1, 0, 0, 0)
# Characters that are not allowed anywhere in an XML 1.0 document.
_XML_INVALID = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def _xml_safe(text: str) -> str:
    return _XML_INVALID.sub("", text)


def _normalize_zip(data: bytes) -> bytes:
    """Rewrite the package with fixed entry timestamps."""
    source = zipfile.ZipFile(io.BytesIO(data))
    out = io.BytesIO()
    with zipfile.ZipFile(out, "w", compression=zipfile.ZIP_DEFLATED) as target:
        for info in source.infolist():
            entry = zipfile.ZipInfo(info.filename, date_time=_ZIP_DATE_TIME)
            entry.compress_type = zipfile.ZIP_DEFLATED
            target.writestr(entry, source.read(info.filename))
    return out.getvalue()


class DocxReportRenderer:
    """Renders a day bucket as a Word document with a title, a count and one table."""

    extension = "docx"

    def __init__(self, title_prefix: str = "Data report") -> None:
        self._title_prefix = title_prefix

    def render(self, day: str, records: Sequence[Any]) -> bytes:
        columns = table_columns(records)
        doc = Document()
        props = doc.core_properties
        props.created = _FIXED_TIMESTAMP
        props.modified = _FIXED_TIMESTAMP
        props.last_printed = _FIXED_TIMESTAMP
        props.revision = 1
        props.title = f"{self._title_prefix} - {day}"

        title = doc.add_paragraph()
        title_run = title.add_run(f"{self._title_prefix} - {day}")
        title_run.bold = True
        title_run.font.size = Pt(16)
        title.paragraph_format.space_after = Pt(10)

        count = doc.add_paragraph()
        count.add_run(f"{len(records)} records").font.size = Pt(12)
        count.paragraph_format.space_after = Pt(20)

        table = doc.add_table(rows=1, cols=len(columns))
        table.style = "Table Grid"
        for cell, column in zip(table.rows[0].cells, columns):
            paragraph = cell.paragraphs[0]
            paragraph.add_run(_xml_safe(column)).bold = True
            paragraph.alignment = WD_PARAGRAPH_ALIGNMENT.CENTER

        for record in records:
            row = table.add_row().cells
            for cell, column in zip(row, columns):
                cell.text = _xml_safe(cell_text(record, column))

        buffer = io.BytesIO()
        doc.save(buffer)
        return _normalize_zip(buffer.getvalue())
