# backend/models/base.py
from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Structured sub-objects: JSONB on PostgreSQL, native JSON on MySQL,
# JSON text on SQLite.
JSONColumn = JSON().with_variant(JSONB(), "postgresql")
