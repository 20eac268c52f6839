# app/services/r2_helper.py
import logging
import time

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import UploadFile
from slugify import slugify

from app.config import settings
from app.services.r2_client import get_s3_client

logger = logging.getLogger(__name__)

CONTENT_KINDS = {
    "application/pdf": "pdf",
    "application/epub+zip": "epub",
    "text/plain": "txt",
    "text/html": "html",
}

COVER_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}


def _upload(file: UploadFile, key: str):
    get_s3_client().upload_fileobj(
        file.file,
        settings.r2_bucket_name,
        key,
        ExtraArgs={"ContentType": file.content_type},
    )
    logger.info("Uploaded %s to R2", key)
    return key


def upload_book_content(file: UploadFile, book_id: int, title: str):
    kind = CONTENT_KINDS[file.content_type]
    key = f"book_content/{book_id}_{slugify(title)}.{kind}"
    return _upload(file, key), kind


def upload_book_sample(file: UploadFile, book_id: int, title: str):
    kind = CONTENT_KINDS[file.content_type]
    key = f"book_samples/{book_id}_{slugify(title)}.{kind}"
    return _upload(file, key)


def upload_book_cover(file: UploadFile, title: str):
    ext = file.filename.split(".")[-1].lower()
    key = f"book_covers/{slugify(title)}_{int(time.time())}.{ext}"
    return _upload(file, key)


def delete_r2_file(key: str):
    try:
        get_s3_client().delete_object(Bucket=settings.r2_bucket_name, Key=key)
    except (BotoCoreError, ClientError):
        logger.warning("Could not delete %s from R2", key, exc_info=True)


def to_presigned_url(key: str, expires: int = None):
    """Absolute URLs are returned unchanged; storage keys get a signed GET URL."""
    if key.startswith(("http://", "https://")):
        return key

    return get_s3_client().generate_presigned_url(
        "get_object",
        Params={
            "Bucket": settings.r2_bucket_name,
            "Key": key,
            "ResponseContentDisposition": "inline",
        },
        ExpiresIn=expires or settings.content_url_expires,
    )
