"""
Export artifact storage.

CSV/PDF bytes are always kept inline on the order row. When Cloudflare R2 is
configured the same bytes are mirrored there so the supplier email can carry a
download link. Keys are derived from the order number, so re-uploading the same
artifact overwrites identical content.
"""

import logging
from io import BytesIO

from .config import settings
from .errors import ExportStorageError

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    "csv": "text/csv",
    "pdf": "application/pdf",
}


def r2_configured() -> bool:
    """Check if Cloudflare R2 credentials are set."""
    return bool(
        settings.CLOUDFLARE_R2_ACCOUNT_ID
        and settings.CLOUDFLARE_R2_ACCESS_KEY_ID
        and settings.CLOUDFLARE_R2_SECRET_ACCESS_KEY
    )


def export_key(order_number: str, fmt: str) -> str:
    return f"material-orders/{order_number}.{fmt}"


def _upload_to_r2(file_bytes: bytes, key: str, content_type: str) -> str:
    """Upload bytes to Cloudflare R2 and return the public URL."""
    import boto3

    s3 = boto3.client(
        "s3",
        endpoint_url=f"https://{settings.CLOUDFLARE_R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=settings.CLOUDFLARE_R2_ACCESS_KEY_ID,
        aws_secret_access_key=settings.CLOUDFLARE_R2_SECRET_ACCESS_KEY,
    )
    s3.upload_fileobj(
        BytesIO(file_bytes),
        settings.CLOUDFLARE_R2_BUCKET,
        key,
        ExtraArgs={"ContentType": content_type},
    )
    return f"https://{settings.CLOUDFLARE_R2_BUCKET}.{settings.CLOUDFLARE_R2_ACCOUNT_ID}.r2.dev/{key}"


def mirror_export(order, fmt: str, file_bytes: bytes):
    """
    Upload one export to R2 if configured. Returns the URL, or None when R2 is off.
    Raises ExportStorageError on upload failure — the order row is left as is.
    """
    if not r2_configured():
        return None
    key = export_key(order.order_number, fmt)
    try:
        url = _upload_to_r2(file_bytes, key, CONTENT_TYPES[fmt])
    except Exception as e:
        logger.error("Upload of %s for order %s failed: %s", fmt, order.order_number, e)
        raise ExportStorageError(
            f"Could not store {fmt.upper()} export for order {order.order_number}: {e}",
            job_id=order.job_id,
            order_number=order.order_number,
            order_id=order.id,
        ) from e
    logger.info("Stored %s export for order %s at %s", fmt, order.order_number, url)
    return url
