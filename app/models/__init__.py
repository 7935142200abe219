from app.models.reference import Constituency, Block, Booth, Part
from app.models.voter import Voter, EDITABLE_VOTER_FIELDS

__all__ = [
    "Constituency",
    "Block",
    "Booth",
    "Part",
    "Voter",
    "EDITABLE_VOTER_FIELDS",
]
