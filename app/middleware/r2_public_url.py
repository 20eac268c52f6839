# app/middleware/r2_public_url.py
import json
import logging

from botocore.exceptions import BotoCoreError, ClientError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from app.services.r2_helper import to_presigned_url

logger = logging.getLogger(__name__)


def add_cover_urls(obj):
    """Add a signed ``cover_image_url`` next to every stored ``cover_image`` key."""
    if isinstance(obj, dict):
        if obj.get("cover_image"):
            try:
                obj["cover_image_url"] = to_presigned_url(obj["cover_image"])
            except (BotoCoreError, ClientError):
                logger.warning("Could not sign cover %s", obj["cover_image"], exc_info=True)
        for v in obj.values():
            add_cover_urls(v)
    elif isinstance(obj, list):
        for i in obj:
            add_cover_urls(i)
    return obj


class R2PublicURLMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)

        if "application/json" not in response.headers.get("content-type", ""):
            return response

        body = b""
        async for chunk in response.body_iterator:
            body += chunk

        try:
            data = json.loads(body)
        except ValueError:
            data = None

        if not isinstance(data, (dict, list)):
            return Response(content=body, status_code=response.status_code, headers=dict(response.headers))

        headers = {
            k: v for k, v in response.headers.items()
            if k.lower() not in ("content-length", "content-type")
        }
        return JSONResponse(
            content=add_cover_urls(data),
            status_code=response.status_code,
            headers=headers,
        )
