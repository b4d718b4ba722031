import logging
import os
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

import database
from config import ConfigError, get_settings
from responses import ApiError, Internal, ValidationFailed, failure
from routers import addresses, carts, categories, orders, products, users

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("Starting storefront API on port %s (database %s)", settings.port, settings.database_name)
    yield
    database.close()


app = FastAPI(title="Storefront API", lifespan=lifespan)


# Registered before CORS so failures still pass back through CORSMiddleware.
@app.middleware("http")
async def internal_error_middleware(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return failure(Internal.status_code, Internal.default_msg)


app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error envelopes

@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return failure(exc.status_code, exc.msg, exc.data)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "msg": err.get("msg")}
        for err in exc.errors()
    ]
    msg = errors[0]["msg"] if errors else ValidationFailed.default_msg
    return failure(ValidationFailed.status_code, msg, errors)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return failure(exc.status_code, str(exc.detail))


# Routes

@app.get("/")
def read_root():
    return {"msg": "Welcome to the Storefront API"}


app.include_router(users.router)
app.include_router(categories.router)
app.include_router(products.router)
app.include_router(addresses.router)
app.include_router(carts.router)
app.include_router(orders.router)


def run():
    try:
        settings = get_settings()
    except ConfigError as e:
        logger.error("%s", e)
        sys.exit(1)
    logging.getLogger().setLevel(settings.log_level)

    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
