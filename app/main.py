from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from app.api import auth, linkedin_account, status
from app.core.db import engine
from app.core.errors import LinkedInAuthError
from app.utils.exception_handlers import (
    general_exception_handler,
    http_exception_handler,
    linkedin_auth_exception_handler,
    validation_exception_handler,
)


@asynccontextmanager
async def app_lifespan(_: FastAPI) -> AsyncGenerator[None, FastAPI]:
    yield

    await engine.dispose()


app = FastAPI(
    title="LinkedIn Login",
    lifespan=app_lifespan,
    servers=[{"url": "http://localhost:8080", "description": "Local server"}],
)


app.include_router(auth.router)
app.include_router(linkedin_account.router, prefix="/api")
app.include_router(status.router, prefix="/api")

app.add_exception_handler(LinkedInAuthError, linkedin_auth_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)


@app.get("/")
async def healthz() -> str:
    return "OK"
