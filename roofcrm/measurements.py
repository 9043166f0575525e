"""
Roof measurement intake.

Measurements arrive from the aerial-imagery provider or from manual entry.
Linear lengths are often missing (the provider only measures area reliably), so
any unknown length is estimated from the area before calculating.
Missing geometry is never a reason to refuse an order — missing AREA is, and
that check belongs to the calculator.
"""

import logging
import math

from .models import Job, MeasurementSource
from .schemas import RoofMeasurement

logger = logging.getLogger(__name__)

SQ_FT_PER_SQ_METER = 10.764

# Share of the approximate perimeter (4 * sqrt(area)) assigned to each edge type
EAVE_SHARE = 0.5
RAKE_SHARE = 0.3
RIDGE_SHARE = 0.2
VALLEY_SHARE = 0.0

LINEAR_FIELDS = {
    "eave_length_ft": EAVE_SHARE,
    "rake_length_ft": RAKE_SHARE,
    "ridge_length_ft": RIDGE_SHARE,
    "valley_length_ft": VALLEY_SHARE,
}


def estimated_perimeter_ft(area_sq_ft: float) -> float:
    """Treat the roof as a square footprint."""
    return math.sqrt(area_sq_ft) * 4


def normalize_measurement(measurement: RoofMeasurement) -> RoofMeasurement:
    """
    Fill in unknown linear lengths from the roof area.

    Known lengths are kept as measured. If anything was filled the result is
    tagged 'estimated'. Without a positive area nothing can be estimated and the
    measurement is returned unchanged.
    """
    area = measurement.total_area_sqft
    missing = [f for f in LINEAR_FIELDS if getattr(measurement, f) is None]
    if not missing or area is None or area <= 0:
        return measurement

    perimeter = estimated_perimeter_ft(area)
    updates = {f: float(round(perimeter * LINEAR_FIELDS[f])) for f in missing}
    updates["source_quality"] = MeasurementSource.ESTIMATED
    logger.info("Estimated %s from %.0f sq ft roof area", ", ".join(missing), area)
    return measurement.model_copy(update=updates)


def measurement_from_solar_insights(building_insights: dict) -> RoofMeasurement:
    """
    Convert an aerial building-insights payload to a RoofMeasurement.

    Area comes from wholeRoofStats (m² -> sq ft). Pitch is taken from the largest
    roof segment and expressed as rise per 12. The provider gives no edge
    lengths, so those are left unknown for normalize_measurement to estimate.
    """
    solar = (building_insights or {}).get("solarPotential")
    if not solar or not solar.get("wholeRoofStats"):
        logger.warning("No building insights available for roof measurement")
        return RoofMeasurement(source_quality=MeasurementSource.ESTIMATED)

    area_m2 = solar["wholeRoofStats"].get("areaMeters2") or 0.0
    total_area = round(area_m2 * SQ_FT_PER_SQ_METER)

    pitch_rise = None
    segments = solar.get("roofSegmentStats") or []
    if segments:
        largest = max(segments, key=lambda s: (s.get("stats") or {}).get("areaMeters2", 0.0))
        pitch_degrees = largest.get("pitchDegrees")
        if pitch_degrees is not None:
            pitch_rise = round(math.tan(math.radians(pitch_degrees)) * 12)

    return RoofMeasurement(
        total_area_sqft=float(total_area) if total_area > 0 else None,
        predominant_pitch_rise=pitch_rise,
        source_quality=MeasurementSource.HIGH,
    )


def job_measurement(job: Job) -> RoofMeasurement:
    """The measurement currently stored on a job (may have no area)."""
    return RoofMeasurement(
        total_area_sqft=job.roof_area_sqft,
        predominant_pitch_rise=job.predominant_pitch_rise,
        eave_length_ft=job.eave_length_ft,
        rake_length_ft=job.rake_length_ft,
        ridge_length_ft=job.ridge_length_ft,
        valley_length_ft=job.valley_length_ft,
        source_quality=job.measurement_source or MeasurementSource.ESTIMATED.value,
    )


def store_measurement(job: Job, measurement: RoofMeasurement) -> None:
    """Copy a measurement onto the job row (caller commits)."""
    job.roof_area_sqft = measurement.total_area_sqft
    job.predominant_pitch_rise = measurement.predominant_pitch_rise
    job.eave_length_ft = measurement.eave_length_ft
    job.rake_length_ft = measurement.rake_length_ft
    job.ridge_length_ft = measurement.ridge_length_ft
    job.valley_length_ft = measurement.valley_length_ft
    job.measurement_source = MeasurementSource(measurement.source_quality).value


def measurement_for_job(job: Job, override: RoofMeasurement = None) -> RoofMeasurement:
    """Manual entry wins over the stored measurement."""
    if override is not None:
        return override
    return job_measurement(job)
