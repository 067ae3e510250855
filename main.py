from contextlib import asynccontextmanager, contextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response

import config
from gresources.errors import InvalidFolderDeletion, ResourceError, ResourceNotFound, StoreError, ValidationError
from gresources.models.resource import format_timestamp
from gresources.services.path_semantics import normalize_path, validate_content_size, validate_path
from gresources.services.resource_store import ResourceStore
from logger_config import OperationLogger, setup_logger
from monitor import Monitor

# Logger setup
logger = setup_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    operation_logger = OperationLogger(logger)
    monitor = Monitor(
        failure_threshold=config.STORE_FAILURE_THRESHOLD,
        window_seconds=config.STORE_FAILURE_WINDOW,
        alert_handler=operation_logger.critical,
    )
    app.state.operation_logger = operation_logger
    app.state.resource_store = ResourceStore(config.DB_FILE_PATH, config.DB_SCHEMA_PATH, monitor)
    await app.state.resource_store.initialize()
    yield
    await app.state.resource_store.close()


app = FastAPI(title="GResources", lifespan=lifespan)


@app.exception_handler(ResourceError)
async def resource_error_handler(request: Request, exc: ResourceError):
    """Translate store errors into HTTP responses without leaking internals."""
    if isinstance(exc, StoreError):
        request.app.state.operation_logger.error(
            f"Store error during {request.method} {request.url.path}: {exc}", exc_info=exc
        )
        detail = "Internal storage error"
    else:
        detail = str(exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": detail})


@contextmanager
def write_outcome(request: Request, operation: str, path: str):
    """Log a single SUCCESS or FAILED record for a write request."""
    success = False
    try:
        yield
        success = True
    finally:
        request.app.state.operation_logger.log_write_operation(operation, path, success)


def checked_path(raw_path: str) -> str:
    """Normalize and validate the request path, raising HTTPException if invalid."""
    path = normalize_path(raw_path)
    try:
        validate_path(path)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid path: {e}")
    return path


async def read_content(request: Request) -> str:
    """Read the request body as UTF-8 text within the configured size limit."""
    body = await request.body()
    try:
        content = body.decode('utf-8')
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Invalid content: Content must be valid UTF-8 text")
    try:
        validate_content_size(content)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid content: {e}")
    return content


@app.post("/{path:path}", status_code=201)
async def create_resource(path: str, request: Request):
    """Create a resource at the request path with the body as content."""
    store = request.app.state.resource_store
    operation_logger = request.app.state.operation_logger
    raw_path = normalize_path(f"/{path}")
    operation_logger.info(f"Receiving create request for {raw_path}")

    with write_outcome(request, "POST", raw_path):
        resource_path = checked_path(raw_path)
        content = await read_content(request)
        operation_logger.debug(f"Content size: {len(content.encode('utf-8'))} bytes")

        if await store.exists(resource_path):
            raise HTTPException(status_code=409, detail="Resource already exists")
        # A concurrent create can still win the race; the store reports it as a conflict
        await store.create(resource_path, content)

    return Response(status_code=201)


@app.get("/{path:path}")
async def read_resource(path: str, request: Request):
    """Return a resource's content, or the children of a folder one per line."""
    store = request.app.state.resource_store
    operation_logger = request.app.state.operation_logger
    resource_path = checked_path(normalize_path(f"/{path}"))
    operation_logger.info(f"Receiving read request for {resource_path}")

    resource = await store.get(resource_path)
    if resource is not None:
        headers = {
            "created-at": format_timestamp(resource.created_at),
            "updated-at": format_timestamp(resource.updated_at),
            "folder": resource.folder_path,
            "size": str(resource.size),
        }
        return Response(content=resource.content or "", media_type="text/plain", headers=headers)

    try:
        folder = await store.list_folder(resource_path)
    except ResourceNotFound:
        raise HTTPException(status_code=404, detail="Resource not found")

    operation_logger.debug(f"Listing folder {folder.path} with {len(folder.children)} children")
    headers = {
        "created-at": format_timestamp(folder.created_at),
        "folder": folder.folder_path,
    }
    return Response(content="\n".join(folder.children), media_type="text/plain", headers=headers)


@app.patch("/{path:path}", status_code=204)
async def update_resource(path: str, request: Request):
    """Overwrite the content of an existing resource."""
    store = request.app.state.resource_store
    operation_logger = request.app.state.operation_logger
    raw_path = normalize_path(f"/{path}")
    operation_logger.info(f"Receiving update request for {raw_path}")

    with write_outcome(request, "PATCH", raw_path):
        resource_path = checked_path(raw_path)
        content = await read_content(request)

        if not await store.exists(resource_path):
            raise HTTPException(status_code=404, detail="Resource not found")
        await store.update(resource_path, content)

    return Response(status_code=204)


@app.delete("/{path:path}", status_code=204)
async def delete_resource(path: str, request: Request):
    """Delete a resource, or an empty folder as a no-op."""
    store = request.app.state.resource_store
    operation_logger = request.app.state.operation_logger
    raw_path = normalize_path(f"/{path}")
    operation_logger.info(f"Receiving delete request for {raw_path}")

    with write_outcome(request, "DELETE", raw_path):
        resource_path = checked_path(raw_path)

        if await store.exists(resource_path):
            await store.delete(resource_path)
        elif resource_path == '/':
            # The root folder always exists
            await store.delete_folder(resource_path)
        elif await store.folder_is_empty(resource_path):
            raise ResourceNotFound("Resource or folder not found")
        else:
            raise InvalidFolderDeletion("Cannot delete non-empty folder")

    return Response(status_code=204)


if __name__ == "__main__":
    logger.info("Starting GResources server...")
    logger.info(f"Database file: {config.DB_FILE_PATH}")
    logger.info(f"Maximum resource size: {config.MAX_RESOURCE_SIZE / (1024*1024):.2f} MB")
    uvicorn.run(app, host=config.HOST, port=config.PORT)
