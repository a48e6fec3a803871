"""
SQLAlchemy Models for Database
==============================

Tables backing the SQL record store:
- attorneys
- profiles
- cases (optionally owned by an attorney)
- time_logs (cascade-deleted with their case)

Column names match the hosted PostgREST schema so both store adapters
return the same row dictionaries.

Supports both PostgreSQL and SQLite via SQLAlchemy.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Text, Boolean, DateTime, ForeignKey, CheckConstraint, Index
)
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()


def generate_uuid():
    return str(uuid.uuid4())


def utcnow():
    # Naive UTC; the store attaches tzinfo on the way out
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =============================================================================
# PEOPLE
# =============================================================================

class Attorney(Base):
    """Attorney who owns cases"""
    __tablename__ = "attorneys"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    title = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    cases = relationship("Case", back_populates="attorney")


class Profile(Base):
    """Signed-in user profile"""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    avatar_url = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


# =============================================================================
# CASES & TIME LOGS
# =============================================================================

class Case(Base):
    """Legal case"""
    __tablename__ = "cases"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    client_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), default="Active", nullable=False)  # Active/Closed/Pending
    attorney_id = Column(String(36), ForeignKey("attorneys.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("status IN ('Active', 'Closed', 'Pending')", name="ck_case_status"),
        Index("ix_cases_attorney_id", "attorney_id"),
    )

    # Relationships
    attorney = relationship("Attorney", back_populates="cases")
    time_logs = relationship("TimeLog", back_populates="case", cascade="all, delete-orphan")


class TimeLog(Base):
    """Billable time interval on a case"""
    __tablename__ = "time_logs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    case_id = Column(String(36), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    activity_type = Column(String(50), default="Other", nullable=False)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_time_log_interval"),
        Index("ix_time_logs_case_id", "case_id"),
    )

    # Relationships
    case = relationship("Case", back_populates="time_logs")
