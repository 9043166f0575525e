"""
Job endpoints — the minimal job slice the material engine needs.

The CRM owns the job lifecycle; it registers jobs here with their address and
pushes roof measurements as they arrive (aerial provider or manual entry).
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user_id
from ..database import get_db
from ..measurements import job_measurement, measurement_from_solar_insights, store_measurement

router = APIRouter(prefix="/jobs", tags=["jobs"])


def get_job_or_404(job_id: int, db: Session) -> models.Job:
    job = db.query(models.Job).filter(models.Job.id == job_id).first()
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


def _job_to_dict(job: models.Job) -> dict:
    measurement = job_measurement(job)
    return {
        "id": job.id,
        "customer_name": job.customer_name,
        "address": job.address,
        "measurement": measurement.model_dump(mode="json") if job.roof_area_sqft is not None else None,
        "created_at": job.created_at.isoformat() if job.created_at else None,
        "updated_at": job.updated_at.isoformat() if job.updated_at else None,
    }


@router.post("/", response_model=schemas.Job)
def create_job(
    job: schemas.JobCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    db_job = models.Job(customer_name=job.customer_name, address=job.address)
    if job.measurement:
        store_measurement(db_job, job.measurement)
    db.add(db_job)
    db.commit()
    db.refresh(db_job)
    return _job_to_dict(db_job)


@router.get("/{job_id}", response_model=schemas.Job)
def get_job(job_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    return _job_to_dict(get_job_or_404(job_id, db))


@router.put("/{job_id}/measurement", response_model=schemas.Job)
def update_measurement(
    job_id: int,
    measurement: schemas.RoofMeasurement,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Replace the stored measurement. Existing material orders keep the measurement they were built from."""
    job = get_job_or_404(job_id, db)
    store_measurement(job, measurement)
    db.commit()
    db.refresh(job)
    return _job_to_dict(job)


@router.post("/{job_id}/measurement/solar", response_model=schemas.Job)
def import_solar_measurement(
    job_id: int,
    building_insights: dict,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Store a measurement converted from an aerial building-insights payload."""
    job = get_job_or_404(job_id, db)
    store_measurement(job, measurement_from_solar_insights(building_insights))
    db.commit()
    db.refresh(job)
    return _job_to_dict(job)


@router.delete("/{job_id}")
def delete_job(job_id: int, db: Session = Depends(get_db), user_id: int = Depends(get_current_user_id)):
    """Deleting a job deletes its material orders with it."""
    job = get_job_or_404(job_id, db)
    db.delete(job)
    db.commit()
    return {"ok": True}
