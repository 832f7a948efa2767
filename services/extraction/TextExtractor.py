"""Plain-text extraction from uploaded document buffers.

PDF via pypdf, Word via python-docx, Excel via openpyxl (xlsx) and xlrd
(legacy xls), plain text as UTF-8.
"""

import csv
import io

import openpyxl
import xlrd
from docx import Document as WordDocument
from pypdf import PdfReader

from shared.exceptions.RetrievalErrors import ExtractionFailed, UnsupportedMediaType
from shared.helper.HelperConfig import HelperConfig

MEDIA_TYPE_PDF = "application/pdf"
MEDIA_TYPE_DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
MEDIA_TYPE_DOC = "application/msword"
MEDIA_TYPE_XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
MEDIA_TYPE_XLS = "application/vnd.ms-excel"
MEDIA_TYPE_TEXT = "text/plain"


class TextExtractor:
    """Converts a raw document buffer and its declared media type into plain text."""

    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()
        self._extractors = {
            MEDIA_TYPE_PDF: self._extract_pdf,
            MEDIA_TYPE_DOCX: self._extract_word,
            MEDIA_TYPE_DOC: self._extract_word,
            MEDIA_TYPE_XLSX: self._extract_xlsx,
            MEDIA_TYPE_XLS: self._extract_xls,
            MEDIA_TYPE_TEXT: self._extract_text,
        }

    @staticmethod
    def normalize_media_type(media_type: str) -> str:
        """Strips parameters and case, e.g. "Text/Plain; charset=utf-8" → "text/plain"."""
        return media_type.split(";", 1)[0].strip().lower()

    def supported_media_types(self) -> list[str]:
        return list(self._extractors)

    def is_supported(self, media_type: str) -> bool:
        return self.normalize_media_type(media_type) in self._extractors

    ##########################################
    ################ CORE ####################
    ##########################################

    def extract(self, buffer: bytes, media_type: str, filename: str) -> str:
        """Extract the plain text of a document.

        Args:
            buffer (bytes): The raw file content.
            media_type (str): Declared MIME type of the upload.
            filename (str): Original file name, for error context.

        Returns:
            str: The extracted text. May be "" if the document holds no text;
                rejecting empty documents is the caller's job.

        Raises:
            UnsupportedMediaType: If no extractor handles the media type.
            ExtractionFailed: If the parser library fails.
        """
        extractor = self._extractors.get(self.normalize_media_type(media_type))
        if extractor is None:
            raise UnsupportedMediaType(media_type, filename=filename)
        try:
            text = extractor(buffer)
        except Exception as exc:
            self.logging.error("Error extracting text from %s (%s): %s", filename, media_type, exc)
            raise ExtractionFailed(filename, exc) from exc
        self.logging.debug("Extracted %d characters from %s", len(text), filename)
        return text

    ##########################################
    ############## EXTRACTORS ################
    ##########################################

    def _extract_pdf(self, buffer: bytes) -> str:
        reader = PdfReader(io.BytesIO(buffer))
        return "\n".join(page.extract_text() or "" for page in reader.pages)

    def _extract_word(self, buffer: bytes) -> str:
        document = WordDocument(io.BytesIO(buffer))
        lines = [paragraph.text for paragraph in document.paragraphs]
        for table in document.tables:
            for row in table.rows:
                lines.append("\t".join(cell.text for cell in row.cells))
        return "\n".join(lines)

    def _extract_xlsx(self, buffer: bytes) -> str:
        workbook = openpyxl.load_workbook(io.BytesIO(buffer), read_only=True, data_only=True)
        try:
            return "".join(
                self._render_sheet(sheet.title, sheet.iter_rows(values_only=True))
                for sheet in workbook.worksheets
            )
        finally:
            workbook.close()

    def _extract_xls(self, buffer: bytes) -> str:
        workbook = xlrd.open_workbook(file_contents=buffer)
        parts = []
        for sheet in workbook.sheets():
            rows = (sheet.row_values(index) for index in range(sheet.nrows))
            parts.append(self._render_sheet(sheet.name, rows))
        return "".join(parts)

    def _extract_text(self, buffer: bytes) -> str:
        return buffer.decode("utf-8")

    @staticmethod
    def _render_sheet(name: str, rows) -> str:
        """Renders one sheet as a "Sheet: <name>" header followed by its rows as CSV."""
        out = io.StringIO()
        writer = csv.writer(out, lineterminator="\n")
        for row in rows:
            writer.writerow(["" if value is None else value for value in row])
        return f"Sheet: {name}\n{out.getvalue()}\n\n"
