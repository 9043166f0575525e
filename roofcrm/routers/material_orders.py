"""
Material order endpoints.

POST /api/jobs/{job_id}/material-orders      — calculate + persist a new order
GET  /api/jobs/{job_id}/material-orders      — order history, newest first
GET  /api/material-orders/{order_id}         — one order
GET  /api/material-orders/{order_id}/csv     — supplier CSV download
GET  /api/material-orders/{order_id}/pdf     — order PDF download
POST /api/material-orders/{order_id}/exports — re-render exports that failed

Downloads support auth via:
1. Authorization: Bearer <token> header (standard)
2. ?token=<jwt> query param (for window.open / direct download links)
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user_id, get_download_user_id
from ..database import get_db
from ..order_assembler import generate_material_order, regenerate_exports
from .jobs import get_job_or_404

router = APIRouter(tags=["material-orders"])


def _get_order_or_404(order_id: int, db: Session) -> models.MaterialOrder:
    order = db.query(models.MaterialOrder).filter(models.MaterialOrder.id == order_id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Material order not found")
    return order


def _order_to_dict(order: models.MaterialOrder) -> dict:
    return {
        "id": order.id,
        "job_id": order.job_id,
        "order_number": order.order_number,
        "job_address": order.job_address,
        "shingle_color": order.shingle_color,
        "material_system": order.material_system,
        "roof_complexity": order.roof_complexity,
        "total_squares": order.total_squares,
        "waste_percent": order.waste_percent,
        "line_items": order.line_items or [],
        "measurement": order.measurement_json,
        "has_csv": order.csv_export is not None,
        "has_pdf": order.pdf_export is not None,
        "csv_url": order.csv_url,
        "pdf_url": order.pdf_url,
        "created_by": order.created_by,
        "created_at": order.created_at.isoformat() if order.created_at else None,
    }


def _download(order: models.MaterialOrder, content, fmt: str, media_type: str) -> Response:
    if content is None:
        raise HTTPException(
            status_code=404,
            detail=f"{fmt.upper()} export missing for this order. "
                   f"POST /api/material-orders/{order.id}/exports to regenerate it.",
        )
    filename = f"{order.order_number}.{fmt}"
    return Response(
        content=bytes(content),
        media_type=media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
        },
    )


@router.post("/jobs/{job_id}/material-orders", response_model=schemas.MaterialOrder, status_code=201)
def create_material_order(
    job_id: int,
    request: schemas.MaterialOrderCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """
    Build a material order from the job's roof measurement.

    Every call creates a new order with its own number; earlier orders for the
    job are left untouched.
    """
    job = get_job_or_404(job_id, db)
    order = generate_material_order(db, job, request, created_by=user_id)
    return _order_to_dict(order)


@router.get("/jobs/{job_id}/material-orders", response_model=List[schemas.MaterialOrder])
def list_material_orders(
    job_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    get_job_or_404(job_id, db)
    orders = (
        db.query(models.MaterialOrder)
        .filter(models.MaterialOrder.job_id == job_id)
        .order_by(models.MaterialOrder.created_at.desc(), models.MaterialOrder.id.desc())
        .all()
    )
    return [_order_to_dict(o) for o in orders]


@router.get("/material-orders/{order_id}", response_model=schemas.MaterialOrder)
def get_material_order(
    order_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return _order_to_dict(_get_order_or_404(order_id, db))


@router.get("/material-orders/{order_id}/csv")
def download_csv(
    order_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_download_user_id),
):
    """Supplier CSV exactly as stored at creation time."""
    order = _get_order_or_404(order_id, db)
    return _download(order, order.csv_export, "csv", "text/csv")


@router.get("/material-orders/{order_id}/pdf")
def download_pdf(
    order_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_download_user_id),
):
    """Order PDF exactly as stored at creation time."""
    order = _get_order_or_404(order_id, db)
    return _download(order, order.pdf_export, "pdf", "application/pdf")


@router.post("/material-orders/{order_id}/exports", response_model=schemas.MaterialOrder)
def retry_exports(
    order_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Render (and mirror) exports missing after a failure. Existing artifacts are kept."""
    order = _get_order_or_404(order_id, db)
    order = regenerate_exports(db, order)
    return _order_to_dict(order)
