# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""SQLAlchemy models for VDR Console persistence.

Most apps keep loosely-typed JSON records, so they share the
``documents`` table: one row per record, grouped by collection and
ordered by ``position``. Forms have their own typed table.
"""
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Document(Base):
    """A single JSON record within a named collection."""
    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint("collection", "doc_id", name="uq_documents_collection_doc_id"),
        Index("ix_documents_collection_position", "collection", "position"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String(64), nullable=False)
    doc_id = Column(String(255), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    data_json = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)


class AppSetting(Base):
    """Named settings blob (badges, forms-builder, orbit, seed markers)."""
    __tablename__ = "app_settings"

    name = Column(String(100), primary_key=True)
    value_json = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)


class Form(Base):
    """Forms-builder form definition."""
    __tablename__ = "forms"

    id = Column(String(36), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    slug = Column(String(255), nullable=True, unique=True, index=True)
    schema_json = Column("schema", JSON, nullable=False)
    status = Column(String(20), nullable=False, default="draft", index=True)  # draft | published
    mode = Column(String(20), nullable=False, default="simple")  # simple | advanced
    author_name = Column(String(255), nullable=True)
    author_email = Column(String(255), nullable=True)
    author_organization = Column(String(255), nullable=True)
    github_user_id = Column(String(64), nullable=False, index=True)
    github_username = Column(String(255), nullable=False)
    cloned_from = Column(String(36), nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)
    published_at = Column(DateTime, nullable=True)
