"""
Voter import error taxonomy.

Every failure is terminal for the import that raised it; nothing here is retried.
"""
from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from app.services.reference_validator import RowIssue


class VoterImportError(Exception):
    """Base class for bulk import failures"""

    message = "Voter import failed"


class DecodeError(VoterImportError):
    """Upload is not a readable spreadsheet"""

    message = "Invalid spreadsheet upload"


class ImportValidationError(VoterImportError):
    """One or more rows failed validation; nothing from the upload is inserted"""

    message = "Foreign key validation failed for some rows. Fix and re-upload."

    def __init__(self, row_issues: List["RowIssue"]):
        super().__init__(f"{len(row_issues)} row(s) failed validation")
        self.row_issues = row_issues


class StorageError(VoterImportError):
    """Write transaction failed and was rolled back"""

    message = "Database insert error"
