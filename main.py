"""
Main FastAPI Application

Serves the diagram dashboard and the API endpoints for prompt enhancement,
diagram generation and diagram history.
"""

import os
import json
import logging
from datetime import datetime

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

# Firebase Admin SDK
import firebase_admin
from firebase_admin import credentials, firestore

from config import (
    HOST,
    PORT,
    DEBUG,
    STATIC_DIR,
    CORS_ORIGINS,
    CORS_METHODS,
    CORS_HEADERS,
    LOG_LEVEL,
    LOG_FORMAT,
    FIREBASE_PROJECT_ID,
    FIREBASE_SERVICE_ACCOUNT_PATH,
)
from user_friendly_errors import get_friendly_status_message
from diagram_generator import diagram_generator
from diagram_store import diagram_store
from prompt_enhancer import prompt_enhancer
from html_generator import html_generator
from routes import diagram_routes

# Setup logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

app = FastAPI(title="Diagram Studio Backend", version="1.0.0")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"❌ Validation error on {request.method} {request.url}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation error",
            "details": exc.errors(),
        }
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Return {error, details?} bodies while logging technical details."""
    logger.error(f"HTTPException on {request.method} {request.url}: {exc.status_code} {exc.detail}")

    status_code = exc.status_code or 500
    detail = exc.detail

    # Structured details already carry the client-facing error body
    if isinstance(detail, dict):
        return JSONResponse(status_code=status_code, content=detail, headers=exc.headers)

    return JSONResponse(
        status_code=status_code,
        content={"error": get_friendly_status_message(status_code)},
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all handler to avoid exposing technical errors to users."""
    logger.error(f"Unhandled error on {request.method} {request.url}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": get_friendly_status_message(500)}
    )


def init_firebase():
    """Initialize Firebase Admin SDK and return a Firestore client, or None"""
    try:
        if not firebase_admin._apps:
            options = {'projectId': FIREBASE_PROJECT_ID} if FIREBASE_PROJECT_ID else None
            credentials_json = os.getenv('GOOGLE_APPLICATION_CREDENTIALS_JSON')
            if credentials_json:
                try:
                    cred = credentials.Certificate(json.loads(credentials_json))
                except json.JSONDecodeError as e:
                    logger.error(f"Invalid JSON in GOOGLE_APPLICATION_CREDENTIALS_JSON: {e}")
                    raise
                firebase_admin.initialize_app(cred, options)
                logger.info("Firebase initialized with JSON credentials from environment")
            elif FIREBASE_SERVICE_ACCOUNT_PATH and os.path.exists(FIREBASE_SERVICE_ACCOUNT_PATH):
                cred = credentials.Certificate(FIREBASE_SERVICE_ACCOUNT_PATH)
                firebase_admin.initialize_app(cred, options)
                logger.info("Firebase initialized with service account file")
            else:
                firebase_admin.initialize_app(credentials.ApplicationDefault(), options)
                logger.info("Firebase initialized with Application Default Credentials")

        db = firestore.client()
        logger.info("Firebase Admin SDK initialized successfully!")
        return db
    except Exception as e:
        logger.warning(f"Firebase Admin SDK initialization failed: {e}")
        logger.info("Firebase features will be disabled - diagrams cannot be stored")
        return None


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    logger.info("🚀 Starting application startup...")

    db = init_firebase()
    diagram_store.set_db(db)

    if not diagram_generator.is_available():
        logger.warning("⚠️ Diagram generation is not configured (GROQ_API_KEY missing)")
    if not prompt_enhancer.is_available():
        logger.warning("⚠️ Prompt enhancement is not configured (DEEPSEEK_API_KEY missing)")

    logger.info("✅ Application startup complete!")


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=CORS_ORIGINS != ["*"],
    allow_methods=CORS_METHODS,
    allow_headers=CORS_HEADERS,
    max_age=86400,
)
logger.info(f"🌐 CORS configured with origins: {CORS_ORIGINS}")

# Mount static files
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

app.include_router(diagram_routes.router)


@app.get("/", response_class=HTMLResponse)
async def dashboard_page():
    """Serve the diagram dashboard"""
    html_content = html_generator.generate_dashboard_html()
    if html_content is None:
        raise HTTPException(status_code=500, detail={"error": "Failed to render dashboard"})
    return HTMLResponse(content=html_content)


@app.get("/health")
async def health_check():
    """Simple health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "services": {
            "diagram_generation": diagram_generator.is_available(),
            "prompt_enhancement": prompt_enhancer.is_available(),
            "storage": diagram_store.is_available(),
        },
    }


if __name__ == "__main__":
    uvicorn.run("main:app", host=HOST, port=PORT, reload=DEBUG)
