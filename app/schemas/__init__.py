# Pydantic schemas
from app.schemas.voter import (
    VoterCreate, VoterEdit,
    VoterListItem, VoterListResponse, MessageResponse,
    RowIssueResponse, VoterImportResponse, VoterImportFailure
)

__all__ = [
    "VoterCreate", "VoterEdit",
    "VoterListItem", "VoterListResponse", "MessageResponse",
    "RowIssueResponse", "VoterImportResponse", "VoterImportFailure",
]
