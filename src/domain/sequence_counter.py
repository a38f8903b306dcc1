"""Sequence Counter Domain Entity

Durable holder of the last issued invoice number.
"""

from datetime import datetime
from sqlmodel import Field, Column
from sqlalchemy import BigInteger, CheckConstraint, String
from src.domain.base import BaseModel

INVOICE_SEQUENCE = "invoice_number"


class SequenceCounter(BaseModel, table=True):
    """
    Sequence Counter - last issued value of a named sequence

    Domain Rules:
    - One row per sequence name
    - last_issued_number only moves forward, except a release that returns
      the most recently reserved value (last_issued_number == n -> n - 1)
    - Values are never handed out twice
    """

    __tablename__ = "sequence_counters"
    __table_args__ = (
        CheckConstraint('last_issued_number >= 0', name='last_issued_number_non_negative'),
    )

    name: str = Field(
        sa_column=Column(String(50), primary_key=True),
        description="Sequence name (e.g., 'invoice_number')"
    )

    last_issued_number: int = Field(
        default=0,
        sa_column=Column(BigInteger, nullable=False, default=0),
        description="Last reserved value (0 = nothing issued yet)"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last reservation/release timestamp"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "name": "invoice_number",
                "last_issued_number": 41,
                "updated_at": "2024-01-01T00:00:00Z"
            }
        }
