"""
Error taxonomy for the material order engine.

Every error carries the job id and, once one has been allocated, the order
number/id, so a failed order can be reconciled by hand. Nothing in the engine
catches these to hide them; the API layer maps them to HTTP responses in main.py.
"""


class MaterialOrderError(Exception):
    """Base class — message plus reconciliation context."""

    status_code = 500

    def __init__(self, message: str, job_id: int = None,
                 order_number: str = None, order_id: int = None):
        super().__init__(message)
        self.message = message
        self.job_id = job_id
        self.order_number = order_number
        self.order_id = order_id

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "error": type(self).__name__,
            "job_id": self.job_id,
            "order_number": self.order_number,
            "order_id": self.order_id,
        }


class ValidationError(MaterialOrderError):
    """Bad caller input — missing color/manufacturer, invalid tier or accessory, negative area. Not retried."""

    status_code = 400


class MissingMeasurement(MaterialOrderError):
    """No usable roof area at all. The engine never substitutes a default area."""

    status_code = 422


class AllocationConflict(MaterialOrderError):
    """Order number collided on every allocation attempt."""

    status_code = 409


class ExportRenderError(MaterialOrderError):
    """CSV/PDF could not be produced. The order row itself is kept."""

    status_code = 500


class ExportStorageError(ExportRenderError):
    """Rendered exports could not be mirrored to object storage."""

    status_code = 502
