from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.api.v1 import api_router
from storefront.core.config import settings
from storefront.core.logging_config import configure_logging, request_id_ctx_var
from storefront.middleware import RequestLoggingMiddleware
from storefront.schemas.error import ErrorResponse


def get_application() -> FastAPI:
    configure_logging(settings.log_json)
    tags_metadata = [
        {"name": "checkout", "description": "Cart pricing and coupon validation"},
        {"name": "orders", "description": "Order placement and lifecycle"},
        {"name": "admin", "description": "Coupon and order administration"},
    ]
    app = FastAPI(title=settings.app_name, version=settings.app_version, openapi_tags=tags_metadata)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(api_router, prefix="/api/v1")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        payload = ErrorResponse(detail=exc.detail, code=None, request_id=request_id_ctx_var.get())
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(payload.model_dump()))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = jsonable_encoder(exc.errors())
        payload = ErrorResponse(detail=errors, code="validation_error", request_id=request_id_ctx_var.get())
        return JSONResponse(status_code=422, content=payload.model_dump())

    return app


app = get_application()
