from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, JSON, LargeBinary
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base
import enum


class MeasurementSource(str, enum.Enum):
    HIGH = "high"            # aerial imagery, measured geometry
    ESTIMATED = "estimated"  # rough estimate or heuristically filled lengths


# Sequence row used for material order numbers: seeded at startup
MATERIAL_ORDER_SEQUENCE = "material_order"


class Job(Base):
    """
    The slice of a CRM job the material engine needs.

    Leads, pipeline status, scheduling etc. live in the CRM proper.
    Only the address (printed on orders) and the latest roof measurement are kept here.
    """
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    customer_name = Column(String, nullable=True)
    address = Column(Text, nullable=True)

    # Latest roof measurement: from the aerial provider or manual entry
    roof_area_sqft = Column(Float, nullable=True)
    predominant_pitch_rise = Column(Integer, nullable=True)  # rise per 12" run
    eave_length_ft = Column(Float, nullable=True)
    rake_length_ft = Column(Float, nullable=True)
    ridge_length_ft = Column(Float, nullable=True)
    valley_length_ft = Column(Float, nullable=True)
    measurement_source = Column(String, default=MeasurementSource.ESTIMATED.value)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    material_orders = relationship(
        "MaterialOrder",
        back_populates="job",
        cascade="all, delete-orphan",
        order_by="MaterialOrder.id.desc()",
    )


class MaterialOrder(Base):
    """
    Immutable bill of materials for a job.

    Rows are only ever inserted. Regenerating an order creates a new row so the
    full history stays available — a submitted supplier order is a financial record.
    The export blobs are rendered once at creation and served as stored.
    """
    __tablename__ = "material_orders"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    order_number = Column(String, unique=True, nullable=False)
    job_address = Column(Text, nullable=True)  # snapshot at creation

    shingle_color = Column(String, nullable=False)
    material_system = Column(String, nullable=False)  # manufacturer, e.g. 'GAF'
    roof_complexity = Column(String, nullable=False)  # 'simple' | 'moderate' | 'complex'
    total_squares = Column(Float, nullable=False)
    waste_percent = Column(Integer, nullable=False)
    line_items = Column(JSON, nullable=False)        # ordered list of LineItem dicts
    measurement_json = Column(JSON, nullable=True)   # normalized measurement used

    # Derived artifacts: inline blobs are the source of truth, URLs are the R2 mirror
    csv_export = Column(LargeBinary, nullable=True)
    pdf_export = Column(LargeBinary, nullable=True)
    csv_url = Column(String, nullable=True)
    pdf_url = Column(String, nullable=True)

    created_by = Column(Integer, nullable=True)  # user id from the auth token
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    job = relationship("Job", back_populates="material_orders")


class OrderSequence(Base):
    """Persisted monotonic counters. Incremented with a single UPDATE inside the insert transaction."""
    __tablename__ = "order_sequences"

    name = Column(String, primary_key=True)
    value = Column(Integer, nullable=False, default=0)
