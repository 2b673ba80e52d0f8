import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError
from starlette.exceptions import HTTPException as StarletteHTTPException

from deptrecords import models  # noqa: F401  регистрирует таблицы в Base.metadata
from deptrecords.database import Base, engine
from deptrecords.errors import ConcurrentModificationError, RecordsError
from deptrecords.logging_config import generate_request_id, set_request_id, setup_logging
from deptrecords.routers import classes as classes_router
from deptrecords.routers import hods as hods_router
from deptrecords.routers import professors as professors_router
from deptrecords.routers import students as students_router
from deptrecords.utils.responses import fail

setup_logging()
logger = logging.getLogger("deptrecords")

app = FastAPI(title="Department Records")
Base.metadata.create_all(bind=engine)

app.include_router(hods_router.router)
app.include_router(professors_router.router)
app.include_router(classes_router.router)
app.include_router(students_router.router)


@app.middleware("http")
async def request_logging(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or generate_request_id()
    set_request_id(request_id)
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    response.headers["X-Request-ID"] = request_id
    logger.info("%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


@app.exception_handler(RecordsError)
async def records_error_handler(request: Request, exc: RecordsError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
    else:
        logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    return JSONResponse(status_code=400, content=fail(message))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=fail(str(exc.detail)), headers=exc.headers)


@app.exception_handler(StaleDataError)
async def stale_write_handler(request: Request, exc: StaleDataError):
    # запись по устаревшему чтению вне atomic(), например PUT /classes/{id}
    return await records_error_handler(request, ConcurrentModificationError())


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content=fail("Internal server error"))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content=fail("Internal server error"))


@app.get("/health")
def health():
    return {"success": True, "status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("deptrecords.main:app", host="127.0.0.1", port=8000, reload=True)
