from __future__ import annotations


class ImportFormatError(ValueError):
    """Raised when an import source cannot be read as a whole."""


class CsvFormatError(ImportFormatError):
    pass


class VCardFormatError(ImportFormatError):
    pass
