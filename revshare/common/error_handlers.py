from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from revshare.common.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PreconditionError,
    SettlementError,
    UpstreamError,
    ValidationError,
)
from revshare.logger_config import logger

STATUS_BY_ERROR = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    PreconditionError: status.HTTP_412_PRECONDITION_FAILED,
    UpstreamError: status.HTTP_502_BAD_GATEWAY,
}


def status_for(error: SettlementError) -> int:
    for error_type, code in STATUS_BY_ERROR.items():
        if isinstance(error, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def register_error_handlers(app: FastAPI):
    @app.exception_handler(SettlementError)
    async def handle_settlement_error(request: Request, e: SettlementError):
        code = status_for(e)
        logger.warning(f"{request.method} {request.url.path} -> {code} {e.code}: {e.message}")
        return JSONResponse(
            status_code=code,
            content={
                "success": False,
                "message": e.message,
                "error": e.code,
                "status_code": code,
                "details": e.details,
            },
        )

    @app.exception_handler(Exception)
    async def handle_exception(request: Request, e: Exception):
        # Log the exception with traceback
        logger.exception("Unhandled exception occurred")

        # Handle all other exceptions (coding, DB errors, etc.)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "message": "Internal Server Error",
                "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            },
        )
