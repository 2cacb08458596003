"""SQLAlchemy models for the invoicebook store."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    Numeric,
    Boolean,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Invoice(Base):
    """Invoice row; ``year``/``month`` hold the partition it is filed under."""

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    filename = Column(String, nullable=False, default="")
    invoice_date = Column(String, nullable=True)
    # Parsed invoice_date, used for ordering; NULL when the date is malformed
    invoice_day = Column(Date, nullable=True)
    year = Column(String(4), nullable=False)
    month = Column(String(2), nullable=False)
    company = Column(String, nullable=True)
    short_description = Column(String(80), nullable=True)
    invoice_number = Column(String, nullable=True)
    tax_id = Column(String, nullable=True)
    # Four fraction digits so amounts are compared before any rounding
    net_amount = Column(Numeric(14, 4), nullable=True)
    tax_percent = Column(Numeric(14, 4), nullable=True)
    tax_amount = Column(Numeric(14, 4), nullable=True)
    gross_amount = Column(Numeric(14, 4), nullable=True)
    currency = Column(String, nullable=True)
    account = Column(Integer, nullable=True)
    bank_account = Column(String, nullable=True)
    payment_date = Column(String, nullable=True)
    partial_payment = Column(Boolean, default=False, nullable=False)
    comment = Column(String, nullable=True)
    net_amount_default_currency = Column(Numeric(14, 4), nullable=True)
    fee = Column(Numeric(14, 4), nullable=True)
    has_attachments = Column(Boolean, default=False, nullable=False)
    original_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        Index("idx_invoices_partition", "year", "month"),
        Index("idx_invoices_date", "invoice_date"),
        Index("idx_invoices_day", "invoice_day"),
        Index("idx_invoices_company", "company"),
        Index("idx_invoices_number", "invoice_number"),
        Index("idx_invoices_filename", "filename"),
    )


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory, creating tables if needed."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
