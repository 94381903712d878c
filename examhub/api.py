"""
Central API router and utilities for ExamHub.

This module provides:
- A central router that modules register their routers with
- The standard response envelope
- Exception handlers mapping domain errors to HTTP responses
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from examhub.common.exceptions import BaseError
from examhub.common.logger import app_logger

logger = app_logger.getChild("api")

main_router = APIRouter()

registered_modules: Dict[str, APIRouter] = {}


def register_module(name: str, router: APIRouter, prefix: Optional[str] = None) -> None:
    """
    Register a module router with the main API router.

    Args:
        name: Name of the module, used as its OpenAPI tag
        router: FastAPI router of the module
        prefix: Path prefix under the API root; defaults to no prefix
    """
    if registered_modules.get(name) is router:
        return
    if name in registered_modules:
        logger.warning(f"Module '{name}' already registered, overwriting")

    main_router.include_router(router, prefix=prefix or "", tags=[name])
    registered_modules[name] = router
    logger.info(f"Registered module: {name} with {len(router.routes)} routes")


class APIResponse:
    """Standard API response structure"""

    @staticmethod
    def success(data: Any = None, message: str = "Success") -> Dict[str, Any]:
        """
        Create a success response.

        Args:
            data: Response data
            message: Success message

        Returns:
            Response dictionary
        """
        return {
            "status": "success",
            "message": message,
            "data": data
        }

    @staticmethod
    def error(message: str, details: Optional[Any] = None,
              code: Optional[str] = None) -> Dict[str, Any]:
        """
        Create an error response.

        Args:
            message: Error message
            details: Optional error details
            code: Optional error code

        Returns:
            Response dictionary
        """
        response = {
            "status": "error",
            "message": message
        }

        if details:
            response["details"] = details

        if code:
            response["code"] = code

        return response


async def domain_exception_handler(request: Request, exc: BaseError) -> JSONResponse:
    """Render a domain error with its own status code."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.code}): {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(APIResponse.error(exc.message, exc.details, exc.code))
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle request validation errors and return a standardized response.

    Args:
        request: The incoming request
        exc: The validation exception

    Returns:
        A JSON response with error details
    """
    error_details = []
    for error in exc.errors():
        error_details.append({
            "location": error.get("loc", []),
            "message": error.get("msg", "Unknown validation error"),
            "type": error.get("type", "")
        })

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder(APIResponse.error("Validation error", error_details, "request_validation_error"))
    )
