"""
Database Schema - SQLAlchemy ORM models

One row per accepted registration. Column lengths mirror the field
rule table; service_options holds the selected options as a JSON list.
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, String, Uuid

from intake_gateway.storage.database import Base


class SubmissionModel(Base):
    """
    Submissions table

    Rows are append-only; the gateway never updates or deletes them.
    """
    __tablename__ = "submissions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    student_name = Column(String(120), nullable=False)
    grade = Column(String(15), nullable=False)
    service_options = Column(JSON, nullable=False)

    # Address
    address = Column(String(150), nullable=False)
    municipio = Column(String(100), nullable=False)
    sector = Column(String(100), nullable=False)
    urbanizacion = Column(String(100), nullable=False)
    bloque = Column(String(50), nullable=False)

    # Father
    father_name = Column(String(120), nullable=False)
    father_phone = Column(String(20), nullable=False)
    father_office_phone = Column(String(20), nullable=False)
    father_email = Column(String(120), nullable=False)

    # Mother
    mother_name = Column(String(120), nullable=False)
    mother_phone = Column(String(20), nullable=False)
    mother_office_phone = Column(String(20), nullable=False)
    mother_email = Column(String(120), nullable=False)

    # Other guardian / responsible party
    other_guardian = Column(String(120), nullable=False)
    other_guardian_phone = Column(String(20), nullable=False)
    responsible_id = Column(String(30), nullable=False, index=True)

    observaciones = Column(String(500), nullable=False)
