# copycheck/main.py
"""
Core FastAPI application, including middleware, endpoints, and audit logging.
"""
import logging
import hashlib
import time
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import Headers
from dotenv import load_dotenv

# Local module imports
from . import config, models, pipeline, ratelimit, schemas
from .errors import CopyCheckError

load_dotenv()

NO_STORE = {"cache-control": "no-store"}
ALLOW_METHODS = ["POST", "OPTIONS", "GET"]
ALLOW_HEADERS = ["authorization", "content-type"]

class PreflightCORSMiddleware(CORSMiddleware):
    """CORS middleware whose successful preflight is an empty 204."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {k: v for k, v in response.headers.items() if k not in ("content-length", "content-type")}
        return Response(status_code=204, headers=headers)

def cors_headers(origin: Optional[str]) -> dict:
    """CORS headers for responses the middleware does not decorate."""
    allowed = config.get_cfg()["server"]["cors_allow_origins"]
    headers = {
        "access-control-allow-methods": ", ".join(ALLOW_METHODS),
        "access-control-allow-headers": ", ".join(ALLOW_HEADERS),
        "access-control-allow-credentials": "true",
    }
    if "*" in allowed or origin in allowed:
        headers["access-control-allow-origin"] = origin or "*"
    return headers

@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await models.close_client()

# --- App Setup ---
app = FastAPI(title="Copy Check", version="1.0.0", lifespan=lifespan)
config.start_config_reloader()

app.add_middleware(
    PreflightCORSMiddleware,
    allow_origins=config.get_cfg()["server"]["cors_allow_origins"],
    allow_credentials=True,
    allow_methods=ALLOW_METHODS,
    allow_headers=ALLOW_HEADERS,
)

# --- Logging ---
logging.basicConfig(level=logging.INFO)
audit_log = logging.getLogger("audit")

def audit_event(kind: str, payload: dict):
    """Logs an audit event if enabled."""
    if not config.get_cfg()["guardrails"]["audit_log"]:
        return
    payload = dict(payload)
    for key in ("text", "suggestion"):
        if key in payload:
            payload[f"{key}_sha256"] = hashlib.sha256(payload.pop(key).encode()).hexdigest()
    payload["ts"] = int(time.time())
    audit_log.info({"event": kind, **payload})

@app.exception_handler(CopyCheckError)
def copy_check_error_handler(request: Request, exc: CopyCheckError):
    """Turns rate-limit and validation rejections into ``{"error": ...}`` bodies."""
    audit_event("rejected", {"status": exc.status_code, "error": exc.message})
    return JSONResponse(
        status_code=exc.status_code,
        content=schemas.ErrorResponse(error=exc.message).model_dump(),
        headers=NO_STORE,
    )

# --- Endpoints ---
@app.get("/health")
def health():
    """Liveness check."""
    return JSONResponse({"ok": True, "ts": int(time.time() * 1000)}, headers=NO_STORE)

@app.get("/api/copy-check")
def copy_check_usage():
    """Tells GET callers how to use the endpoint."""
    return JSONResponse({"ok": True, "use": "POST /api/copy-check"}, headers=NO_STORE)

@app.options("/api/copy-check")
def copy_check_options(request: Request):
    """Plain OPTIONS; browser preflights are answered by the CORS middleware."""
    return Response(status_code=204, headers=cors_headers(request.headers.get("origin")))

@app.post(
    "/api/copy-check",
    response_model=schemas.CopyCheckResponse,
    responses={400: {"model": schemas.ErrorResponse}, 429: {"model": schemas.ErrorResponse}},
)
async def copy_check(request: Request):
    """Returns constraint-compliant copy for the posted text."""
    result = await pipeline.run_copy_check(await request.body(), ratelimit.client_identity(request))
    resp = result.response
    audit_event("copy_check", {
        "text": result.request.text,
        "suggestion": resp.suggestion.text,
        "platform": result.request.platform,
        "status": result.status_code,
        "degraded": result.degraded,
        "flags": len(resp.flags),
        "trail": [stage.value for stage in result.trail],
    })
    return JSONResponse(
        status_code=result.status_code,
        content=resp.model_dump(by_alias=True),
        headers=NO_STORE,
    )
