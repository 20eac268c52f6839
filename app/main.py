import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.database import create_db_and_tables
from app.jobs.order_status_job import status_reconciliation_loop
from app.middleware.r2_public_url import R2PublicURLMiddleware
from app.routes import (
    admin_orders,
    auth,
    book_content,
    books_admin,
    books_public,
    gifts,
    health,
    library,
    orders,
    payments,
    reading_assistant,
    reviews,
    users,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.env == "local":
        create_db_and_tables()

    reconcile_task = None
    if settings.status_reconcile_enabled:
        reconcile_task = asyncio.create_task(
            status_reconciliation_loop(settings.status_reconcile_interval_seconds)
        )
        logger.info(
            "Order status reconciliation every %ss",
            settings.status_reconcile_interval_seconds,
        )

    yield

    if reconcile_task:
        reconcile_task.cancel()
        try:
            await reconcile_task
        except asyncio.CancelledError:
            pass


app = FastAPI(title="Bookstore Orders API", lifespan=lifespan)
app.add_middleware(R2PublicURLMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(books_admin.router, prefix="/admin/books", tags=["Admin Books"])
app.include_router(admin_orders.router, prefix="/admin/orders", tags=["Admin Orders"])
app.include_router(books_public.router, prefix="/books", tags=["Public Books"])
app.include_router(book_content.router, prefix="/books", tags=["Book Content"])
app.include_router(reading_assistant.router, prefix="/reading-assistant", tags=["Reading Assistant"])
app.include_router(library.router, prefix="/library", tags=["Library"])
app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(gifts.router, prefix="/gifts", tags=["Gifts"])
app.include_router(payments.router, prefix="/payments", tags=["Payments"])
app.include_router(reviews.router, prefix="/reviews", tags=["Reviews"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "auth_endpoints": ["/auth/register", "/auth/login"],
        "user_endpoints": ["/users/me", "/users/addresses"],
        "public_books": ["/books", "/books/{book_id}", "/books/{book_id}/sample"],
        "reading": [
            "/books/{book_id}/read", "/library",
            "/reading-assistant/check-access/{book_id}",
            "/reading-assistant/summary/{book_id}",
        ],
        "orders": ["/orders", "/orders/{order_id}"],
        "gifts": ["/gifts/mine", "/gifts/claim", "/gifts/claim/{gift_id}"],
        "payments": [
            "/payments/create-order", "/payments/verify",
            "/payments/webhook", "/payments/status/{order_id}",
        ],
        "reviews": ["/reviews/book/{book_id}", "/reviews/{book_id}"],
    }
