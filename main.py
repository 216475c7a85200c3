"""Emoji Translator API entry point."""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from api.routes import app_deployment, functions_deployment, functions_router, router
from config.logging_config import setup_logging
from config.settings import settings

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

# JSON-only responses never load subresources or get framed.
CONTENT_SECURITY_POLICY = "default-src 'none'; frame-ancestors 'none'; base-uri 'none'"
# Swagger UI and ReDoc pull scripts from a CDN.
DOCS_PATHS = ("/docs", "/redoc", "/openapi.json")

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app_deployment.aclose()
    await functions_deployment.aclose()


# Create the FastAPI app
app = FastAPI(
    title="Emoji Translator API",
    description="Translate short text into emoji",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    if not request.url.path.startswith(DOCS_PATHS):
        response.headers.setdefault("Content-Security-Policy", CONTENT_SECURITY_POLICY)
    return response


# Routes
app.include_router(router)
app.include_router(functions_router)


@app.get("/")
async def root():
    """Return service info."""
    return {
        "message": "Emoji Translator API",
        "version": "1.0.0",
        "endpoints": ["/api/translate", "/functions/api/translate"],
        "docs": "/docs",
    }


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=18000, reload=True)
