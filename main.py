"""
Gemini Chat Bridge - FastAPI application relaying chat and image requests to the Gemini API.
Streams model output back to the frontend as it is generated.
"""
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from config import Config
from routes import chat_stream, image
from services.gemini_client import GeminiClient
from utils.errors import BridgeError
from utils.http_client import HTTPClientManager
from utils.logger import app_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the upstream client once at startup and release connections on shutdown."""
    app.state.gemini_client = GeminiClient.from_config()
    if app.state.gemini_client is None:
        app_logger.error("GEMINI_API_KEY not set: chat and image requests will be refused")
    else:
        app_logger.info(f"Upstream configured: chat={Config.GEMINI_CHAT_MODEL}, image={Config.GEMINI_IMAGE_MODEL}")
    yield
    await HTTPClientManager.close_all()


def _validation_message(error: dict) -> str:
    """Turn a pydantic error entry into a single readable sentence."""
    error_type = error.get('type', '')
    loc = [str(item) for item in error.get('loc', []) if item != 'body']
    field = loc[-1] if loc else None
    ctx = error.get('ctx') or {}

    if error_type == 'value_error' and ctx.get('error') is not None:
        message = str(ctx['error'])
    elif error_type == 'missing':
        message = "field required"
    else:
        message = error.get('msg', 'Validation error')

    if field and error_type != 'value_error':
        return f"{'.'.join(loc)}: {message}"
    return message


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with user-friendly messages"""
    errors = exc.errors()
    app_logger.warning(f"Validation error for {request.url.path}: {errors}")

    if not errors:
        message = "Invalid request"
    else:
        message = _validation_message(errors[0])

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": message,
            "type": "validation_error",
            "detail": [{
                "msg": _validation_message(error),
                "type": error.get('type', ''),
                "loc": list(error.get('loc', []))
            } for error in errors]
        },
    )


async def bridge_exception_handler(request: Request, exc: BridgeError):
    """Report configuration and upstream failures as JSON."""
    app_logger.error(f"{exc.error_type} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.client_message(), "type": exc.error_type},
    )


def create_app() -> FastAPI:
    """Create the application with middleware, error handlers and routes."""
    app = FastAPI(title=Config.APP_TITLE, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.get_allowed_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(BridgeError, bridge_exception_handler)

    @app.get("/")
    async def root(request: Request):
        """Root endpoint - health check."""
        return {
            "message": f"{Config.APP_TITLE} is running",
            "status": "ok",
            "upstream_configured": getattr(request.app.state, "gemini_client", None) is not None
        }

    app.include_router(chat_stream.router, tags=["chat"])
    app.include_router(image.router, tags=["image"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=Config.PORT)
