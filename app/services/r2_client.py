# app/services/r2_client.py
from functools import lru_cache

import boto3
from botocore.config import Config

from app.config import settings


@lru_cache(maxsize=1)
def get_s3_client():
    return boto3.client(
        "s3",
        endpoint_url=f"https://{settings.r2_account_id}.r2.cloudflarestorage.com",
        aws_access_key_id=settings.r2_access_key_id,
        aws_secret_access_key=settings.r2_secret_access_key,
        region_name="auto",
        config=Config(
            connect_timeout=settings.storage_connect_timeout,
            read_timeout=settings.storage_read_timeout,
            retries={"max_attempts": 2},
        ),
    )
