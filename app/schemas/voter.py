from pydantic import BaseModel
from typing import Optional, List, Union, Any


class VoterCreate(BaseModel):
    # Mandatory fields are checked by the endpoint so that missing ones get the standard envelope
    constituency_id: Optional[int] = None
    block_id: Optional[int] = None
    booth_id: Optional[int] = None
    part_id: Optional[int] = None
    voter_id: Optional[Union[str, int]] = None
    name: Optional[str] = None
    father_husband_name: Optional[str] = None
    photo: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    house_no: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    polling_station: Optional[str] = None
    notes: Optional[str] = None


class VoterEdit(BaseModel):
    key: Optional[str] = None
    value: Optional[Any] = None


class VoterListItem(BaseModel):
    id: int
    constituency_id: Optional[int]
    block_id: Optional[int]
    booth_id: Optional[int]
    part_id: Optional[int]
    voter_id: str
    name: str
    father_husband_name: Optional[str]
    photo: Optional[str]
    age: Optional[int]
    gender: Optional[str]
    house_no: Optional[str]
    address: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    polling_station: Optional[str]
    notes: Optional[str]
    constituency_code: Optional[str] = None
    constituency_name: Optional[str] = None
    block_code: Optional[str] = None
    block_name: Optional[str] = None
    booth_code: Optional[str] = None
    booth_name: Optional[str] = None
    part_code: Optional[str] = None
    part_name: Optional[str] = None


class VoterListResponse(BaseModel):
    status: bool
    message: str
    data: List[VoterListItem] = []


class MessageResponse(BaseModel):
    status: bool
    message: str


class RowIssueResponse(BaseModel):
    rowIndex: int
    voter_id: Optional[str]
    issues: List[str]


class VoterImportResponse(BaseModel):
    status: bool
    message: str
    inserted: int
    skipped_duplicates: int


class VoterImportFailure(BaseModel):
    status: bool = False
    message: str
    fkInvalidRows: Optional[List[RowIssueResponse]] = None
    error: Optional[str] = None
