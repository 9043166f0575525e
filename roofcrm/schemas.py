from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from .models import MeasurementSource


class RoofMeasurement(BaseModel):
    """Roof geometry as supplied by the measurement provider or typed in by the crew.

    Linear lengths may be None (unknown) — they are estimated from the area before calculating.
    """
    total_area_sqft: Optional[float] = Field(default=None, allow_inf_nan=False)
    predominant_pitch_rise: Optional[int] = None
    eave_length_ft: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    rake_length_ft: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    ridge_length_ft: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    valley_length_ft: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    source_quality: MeasurementSource = MeasurementSource.ESTIMATED


class ManualAccessory(BaseModel):
    name: str = Field(min_length=1)
    quantity: int = Field(gt=0)


class LineItem(BaseModel):
    category: str
    product_name: str
    quantity: int
    unit: str
    manufacturer: Optional[str] = None
    color: Optional[str] = None
    sku: Optional[str] = None


class JobBase(BaseModel):
    customer_name: Optional[str] = None
    address: Optional[str] = None


class JobCreate(JobBase):
    measurement: Optional[RoofMeasurement] = None


class Job(JobBase):
    id: int
    measurement: Optional[RoofMeasurement] = None
    created_at: datetime
    updated_at: datetime


class MaterialOrderCreate(BaseModel):
    shingle_color: str
    material_system: str = "GAF"
    roof_complexity: str = "moderate"
    accessories: List[ManualAccessory] = []
    # Manual entry: overrides the job's stored measurement when given
    measurement: Optional[RoofMeasurement] = None


class MaterialOrder(BaseModel):
    id: int
    job_id: int
    order_number: str
    job_address: Optional[str] = None
    shingle_color: str
    material_system: str
    roof_complexity: str
    total_squares: float
    waste_percent: int
    line_items: List[LineItem] = []
    measurement: Optional[RoofMeasurement] = None
    has_csv: bool
    has_pdf: bool
    csv_url: Optional[str] = None
    pdf_url: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
