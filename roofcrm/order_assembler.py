"""
Order assembler — turns a computed MaterialList into a persisted, numbered MaterialOrder.

Order numbers: {PREFIX}-{YYYYMMDD}-J{job_id}-{seq:05d}
  seq comes from the `order_sequences` row, bumped with a single UPDATE in the
  same transaction as the order INSERT. The UPDATE row-locks the counter until
  commit, so concurrent requests serialize on it instead of on the whole job.
  order_number is also UNIQUE — if a collision still gets through (stale
  counter, imported rows) the transaction is rolled back and allocation is
  retried above the colliding value, up to ORDER_NUMBER_MAX_RETRIES times.

Everything is computed in memory first (line items, CSV, PDF) and written in
one commit. Orders are never updated afterwards except to fill in exports that
failed to render or upload.
"""

import copy
import logging
from datetime import datetime

from sqlalchemy import case, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .calculators.shingle_roof import compute
from .calculators.waste_policy import WasteTier
from .config import settings
from .errors import AllocationConflict, ExportRenderError, MaterialOrderError, ValidationError
from .exports.csv_export import render_csv
from .exports.order_pdf import render_order_pdf
from .measurements import measurement_for_job
from .models import MATERIAL_ORDER_SEQUENCE, Job, MaterialOrder, OrderSequence
from .schemas import MaterialOrderCreate
from .storage import mirror_export, r2_configured

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.utcnow().replace(microsecond=0)


def format_order_number(job_id: int, created_at: datetime, seq: int) -> str:
    return f"{settings.ORDER_NUMBER_PREFIX}-{created_at:%Y%m%d}-J{job_id}-{seq:05d}"


def seed_order_sequence(db: Session) -> None:
    """Create the counter row if missing, starting after any existing orders."""
    existing = db.query(OrderSequence).filter(OrderSequence.name == MATERIAL_ORDER_SEQUENCE).first()
    if existing:
        return
    count = db.query(func.count(MaterialOrder.id)).scalar() or 0
    db.add(OrderSequence(name=MATERIAL_ORDER_SEQUENCE, value=count))
    db.commit()


def _next_sequence_value(db: Session, floor: int = 0) -> int:
    """Bump the counter (to at least `floor`) and return the new value. Runs inside the caller's transaction."""
    next_value = OrderSequence.value + 1
    stmt = (
        update(OrderSequence)
        .where(OrderSequence.name == MATERIAL_ORDER_SEQUENCE)
        .values(value=case((next_value < floor, floor), else_=next_value))
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    if result.rowcount == 0:
        # First order ever and startup seeding didn't run: a concurrent
        # insert of the same row fails the flush and is retried by the caller.
        count = db.query(func.count(MaterialOrder.id)).scalar() or 0
        start = max(count + 1, floor)
        db.add(OrderSequence(name=MATERIAL_ORDER_SEQUENCE, value=start))
        db.flush()
        return start
    return db.query(OrderSequence.value).filter(
        OrderSequence.name == MATERIAL_ORDER_SEQUENCE
    ).scalar()


def _render_missing_exports(order: MaterialOrder, company: dict = None) -> list:
    """Render whichever exports are missing. Returns [(fmt, exception), ...] for failures."""
    failures = []
    if order.csv_export is None:
        try:
            order.csv_export = render_csv(order)
        except Exception as e:
            logger.exception("CSV export failed for order %s", order.order_number)
            failures.append(("csv", e))
    if order.pdf_export is None:
        try:
            order.pdf_export = render_order_pdf(order, company)
        except Exception as e:
            logger.exception("PDF export failed for order %s", order.order_number)
            failures.append(("pdf", e))
    return failures


def _export_render_error(order: MaterialOrder, failures: list) -> ExportRenderError:
    formats = ", ".join(fmt.upper() for fmt, _ in failures)
    reasons = "; ".join(f"{fmt}: {e}" for fmt, e in failures)
    return ExportRenderError(
        f"Order {order.order_number} was saved but its {formats} export could not be generated "
        f"({reasons}). Retry export generation for this order.",
        job_id=order.job_id,
        order_number=order.order_number,
        order_id=order.id,
    )


def _mirror_missing_exports(db: Session, order: MaterialOrder) -> None:
    """Upload exports that have no URL yet. Whatever succeeded is committed even if a later upload fails."""
    if not r2_configured():
        return
    try:
        if order.csv_export is not None and not order.csv_url:
            order.csv_url = mirror_export(order, "csv", order.csv_export)
        if order.pdf_export is not None and not order.pdf_url:
            order.pdf_url = mirror_export(order, "pdf", order.pdf_export)
    finally:
        db.commit()


def assemble(
    db: Session,
    job: Job,
    shingle_color: str,
    material_system: str,
    roof_complexity,
    material_list: dict,
    created_by: int = None,
    company: dict = None,
) -> MaterialOrder:
    """
    Persist a new MaterialOrder for `job` with a freshly allocated order number.

    Always creates a new row, even for inputs identical to an earlier order.

    Raises:
        ValidationError: missing shingle color or manufacturer
        AllocationConflict: every allocation attempt collided
        ExportRenderError: order saved, but CSV/PDF rendering or upload failed
    """
    job_id = job.id
    job_address = job.address
    if not str(shingle_color or "").strip():
        raise ValidationError("Shingle color is required", job_id=job_id)
    if not str(material_system or "").strip():
        raise ValidationError("Material system (manufacturer) is required", job_id=job_id)
    try:
        tier = WasteTier.parse(roof_complexity)
    except ValidationError as e:
        e.job_id = job_id
        raise

    max_attempts = max(1, settings.ORDER_NUMBER_MAX_RETRIES)
    floor = 0
    order_number = None

    for attempt in range(1, max_attempts + 1):
        seq = None
        created_at = _utcnow()
        try:
            seq = _next_sequence_value(db, floor)
            order_number = format_order_number(job_id, created_at, seq)
            order = MaterialOrder(
                job_id=job_id,
                order_number=order_number,
                job_address=job_address,
                shingle_color=shingle_color.strip(),
                material_system=material_system.strip(),
                roof_complexity=tier.value,
                total_squares=material_list["total_squares"],
                waste_percent=material_list["waste_percent"],
                line_items=copy.deepcopy(material_list["line_items"]),
                measurement_json=copy.deepcopy(material_list.get("measurement")),
                created_by=created_by,
                created_at=created_at,
            )
            failures = _render_missing_exports(order, company)
            db.add(order)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if seq is not None:
                floor = max(floor, seq + 1)
            logger.warning(
                "Order number allocation collided for job %s (attempt %d/%d, number %s): %s",
                job_id, attempt, max_attempts, order_number, e.orig,
            )
            continue

        db.refresh(order)
        logger.info(
            "Created material order %s for job %s (%.1f squares, %d line items)",
            order.order_number, job_id, order.total_squares, len(order.line_items),
        )
        if failures:
            raise _export_render_error(order, failures)
        _mirror_missing_exports(db, order)
        return order

    logger.error("Giving up on order number allocation for job %s after %d attempts", job_id, max_attempts)
    raise AllocationConflict(
        f"Could not allocate a unique order number after {max_attempts} attempts",
        job_id=job_id,
        order_number=order_number,
    )


def generate_material_order(
    db: Session,
    job: Job,
    request: MaterialOrderCreate,
    created_by: int = None,
    company: dict = None,
) -> MaterialOrder:
    """
    Validate, compute and assemble one material order for a job.

    The measurement in the request (manual entry) wins over the job's stored one.
    Nothing is written unless the calculation succeeds.
    """
    if not request.shingle_color.strip():
        raise ValidationError("Shingle color is required", job_id=job.id)

    measurement = measurement_for_job(job, request.measurement)
    try:
        material_list = compute(
            measurement,
            request.roof_complexity,
            request.material_system,
            request.accessories,
            request.shingle_color,
        )
    except MaterialOrderError as e:
        e.job_id = job.id
        logger.warning("Material order for job %s refused: %s", job.id, e.message)
        raise

    return assemble(
        db,
        job,
        shingle_color=request.shingle_color,
        material_system=request.material_system,
        roof_complexity=request.roof_complexity,
        material_list=material_list,
        created_by=created_by,
        company=company,
    )


def regenerate_exports(db: Session, order: MaterialOrder, company: dict = None) -> MaterialOrder:
    """
    Fill in exports missing after a render or upload failure.

    Existing artifacts and line items are never recomputed.
    """
    failures = _render_missing_exports(order, company)
    db.commit()
    if failures:
        raise _export_render_error(order, failures)
    _mirror_missing_exports(db, order)
    db.refresh(order)
    return order
