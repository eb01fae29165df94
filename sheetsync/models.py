from sqlalchemy import (
    Column, Integer, String, JSON,
    DateTime, Index, Text,
)
from sheetsync.database import Base


class ConfigEntry(Base):
    """Two-column key/value table read at the start of every import."""
    __tablename__ = "config"

    key   = Column(String(100), primary_key=True)
    value = Column(String(2000), nullable=False, default="")


class DataRow(Base):
    __tablename__ = "data"

    # Position of the row in the table; updates overwrite in place
    row       = Column("row_no", Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    record_id = Column("id", String(200), nullable=False)
    name      = Column(String(500), nullable=False)
    type      = Column(String(200), nullable=False, default="")
    dimension = Column(String(200), nullable=False, default="")

    # Not unique: append mode keeps one row per fetch
    __table_args__ = (
        Index("ix_data_id", "id"),
    )


class SummaryMetric(Base):
    __tablename__ = "summary"

    row    = Column("row_no", Integer, primary_key=True, autoincrement=True)
    metric = Column(String(100), nullable=False)
    value  = Column(JSON, nullable=True)


class LogEntry(Base):
    __tablename__ = "logs"

    id        = Column(Integer, primary_key=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    level     = Column(String(10), nullable=False)
    message   = Column(String(500), nullable=False)
    context   = Column(Text, nullable=False, default="{}")  # JSON-serialized

    __table_args__ = (
        Index("ix_logs_timestamp", "timestamp"),
    )


# Header row of each table as shown to operators (and in the xlsx export)
DATA_HEADERS = ["timestamp", "id", "name", "type", "dimension"]
SUMMARY_HEADERS = ["metric", "value"]
LOG_HEADERS = ["timestamp", "level", "message", "context"]
