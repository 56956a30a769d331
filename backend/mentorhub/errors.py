from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.exceptions import DomainException


def _title_from_status(status_code: int) -> str:
    mapping = {
        400: "Bad Request",
        404: "Not Found",
        409: "Conflict",
        422: "Unprocessable Entity",
        500: "Internal Server Error",
        503: "Service Unavailable",
    }
    return mapping.get(status_code, "Error")


def _problem(
    *,
    status: int,
    title: Optional[str] = None,
    detail: Optional[str] = None,
    instance: Optional[str] = None,
    type_: str = "about:blank",
    code: Optional[str] = None,
    errors: Optional[Any] = None,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    problem: Dict[str, Any] = {
        "type": type_,
        "title": title or _title_from_status(status),
        "status": status,
        "detail": detail or "",
        "instance": instance or "",
    }
    if code:
        problem["code"] = code
    if errors is not None:
        problem["errors"] = errors
    if details:
        problem["details"] = details
    return problem


def _parse_detail(
    detail: Any,
) -> tuple[Optional[str], Optional[str], Optional[Any], Optional[Dict[str, Any]]]:
    """Split an HTTPException detail into (message, code, error list, extra details)."""
    if isinstance(detail, dict):
        code = detail.get("code") if isinstance(detail.get("code"), str) else None
        message = detail.get("message") or detail.get("detail")
        detail_text = message if isinstance(message, str) else None
        details = detail.get("details") if isinstance(detail.get("details"), dict) else None
        errors = (details or {}).get("errors") or detail.get("errors")
        return detail_text, code, errors, details
    if isinstance(detail, str):
        return detail, None, None, None
    if detail is None:
        return None, None, None, None
    return str(detail), None, None, None


def register_error_handlers(app: FastAPI) -> None:
    """Render every error as an RFC 7807 style problem document."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail_text, code, errors, details = _parse_detail(exc.detail)
        problem = _problem(
            status=exc.status_code,
            detail=detail_text,
            instance=request.url.path,
            code=code,
            errors=jsonable_encoder(errors) if errors is not None else None,
            details=jsonable_encoder(details) if details else None,
        )
        return JSONResponse(problem, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        # Domain errors that escape a route without being converted
        http_exc = exc.to_http_exception()
        return await http_exception_handler(request, http_exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        detail_list = jsonable_encoder(exc.errors())
        return JSONResponse(
            content=_problem(
                status=422,
                detail="Request validation failed",
                instance=request.url.path,
                code="validation_error",
                errors=detail_list,
            ),
            status_code=422,
        )
