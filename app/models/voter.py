from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Boolean, Text
from sqlalchemy.sql import func
from app.database import Base


class Voter(Base):
    __tablename__ = "voters"

    id = Column(Integer, primary_key=True, autoincrement=True)
    constituency_id = Column(Integer, ForeignKey("constituencies.id"), nullable=True, index=True)
    block_id = Column(Integer, ForeignKey("blocks.id"), nullable=True, index=True)
    booth_id = Column(Integer, ForeignKey("booths.id"), nullable=True, index=True)
    part_id = Column(Integer, ForeignKey("parts.id"), nullable=True, index=True)

    # Natural key; the unique index is the final guard against concurrent imports
    voter_id = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    father_husband_name = Column(String, nullable=True)
    photo = Column(Text, nullable=True)  # URL
    age = Column(Integer, nullable=True)
    gender = Column(String(16), nullable=False, default="male")
    house_no = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    polling_station = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())


# Columns a caller may change through the single-field edit endpoint
EDITABLE_VOTER_FIELDS = (
    "constituency_id",
    "block_id",
    "booth_id",
    "part_id",
    "voter_id",
    "name",
    "father_husband_name",
    "photo",
    "age",
    "gender",
    "house_no",
    "address",
    "phone",
    "email",
    "polling_station",
    "notes",
)
