import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from pymongo.errors import PyMongoError

from config import Settings, get_settings
from database import connect, ensure_indexes
from errors import Redirect
# Routers
from routers.auth import router as auth_router
from routers.cook import router as cook_router
from routers.customer import router as customer_router
from routers.feed import router as feed_router
from routers.orders import router as orders_router
from routers.profile import router as profile_router
from services.storage import STATIC_PREFIX

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = connect(settings)
        app.state.db = client[settings.db_name]
        await ensure_indexes(app.state.db)
        logger.info("FoodPool API started (%s)", settings.env.value)
        yield
        client.close()

    app = FastAPI(title="FoodPool API", lifespan=lifespan)

    # Mount the uploaded food images
    os.makedirs(settings.upload_dir, exist_ok=True)
    app.mount(STATIC_PREFIX, StaticFiles(directory=settings.upload_dir), name="static")

    # Allow CORS for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Redirect)
    async def redirect_handler(request: Request, exc: Redirect):
        headers = {"X-Notice": exc.notice} if exc.notice else None
        return RedirectResponse(exc.url, status_code=303, headers=headers)

    @app.exception_handler(PyMongoError)
    async def database_error_handler(request: Request, exc: PyMongoError):
        logger.exception("Database error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=503, content={"detail": "Something went wrong. Please try again."}
        )

    @app.exception_handler(httpx.HTTPError)
    async def upstream_error_handler(request: Request, exc: httpx.HTTPError):
        logger.warning("Upstream call failed on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=502, content={"detail": "Upstream service unavailable"})

    # Route registration
    app.include_router(auth_router)
    app.include_router(customer_router)
    app.include_router(cook_router)
    app.include_router(feed_router)
    app.include_router(orders_router)
    app.include_router(profile_router)

    @app.get("/")
    def read_root():
        return {"message": "API is up and running"}

    return app


app = create_app()
