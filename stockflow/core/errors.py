import logging
import uuid

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from stockflow.core.exceptions import InvalidRequestError, StockFlowException

logger = logging.getLogger("stockflow.errors")


def _field_name(loc) -> str:
    # Drop the "body"/"query"/"path" prefix FastAPI puts in front of the field
    parts = [str(part) for part in loc[1:]] or [str(part) for part in loc]
    return ".".join(parts)


def _validation_error(exc: RequestValidationError) -> InvalidRequestError:
    errors = [{"field": _field_name(err.get("loc", ())), "message": err.get("msg", "")} for err in exc.errors()]
    first = errors[0] if errors else {"field": "", "message": "Invalid request"}
    return InvalidRequestError(f"Invalid {first['field']}: {first['message']}", details={"errors": errors})


def register_error_handlers(app):
    @app.exception_handler(StockFlowException)
    async def stockflow_exception(request: Request, exc: StockFlowException):
        if exc.status_code >= 500:
            logger.error("Request failed code=%s path=%s: %s", exc.code, request.url.path, exc.message)
        else:
            logger.info("Request rejected code=%s path=%s: %s", exc.code, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception(request: Request, exc: RequestValidationError):
        error = _validation_error(exc)
        logger.info("Request rejected code=%s path=%s: %s", error.code, request.url.path, error.message)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception(request: Request, exc: Exception):  # noqa: BLE001
        correlation_id = uuid.uuid4().hex
        logger.exception("Unhandled error cid=%s path=%s method=%s", correlation_id, request.url.path, request.method)
        return JSONResponse(status_code=500, content={"error": "Internal server error", "cid": correlation_id})

    return app
