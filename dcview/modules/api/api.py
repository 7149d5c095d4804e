from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query
from fastapi.responses import Response
import fastapi_swagger_dark as fsd

from dcview import __version__
from dcview.config import load_config
from dcview.modules.access import FileAccess
from dcview.modules.errors import (
    AllStrategiesExhausted,
    CommandFailed,
    DcviewError,
    MissingPayload,
    NotARegularFile,
    NotFound,
    UnsupportedArchitecture,
)
from dcview.modules.runtime import ContainerHandle


app = FastAPI(
    title="dcview API",
    docs_url=None,
    description="""
**dcview API**
* Browse container filesystems over HTTP
* Direct containers and nested (DinD) containers via `host`
    """,
    version=__version__,
    )

# Create a router for the dark docs
router = APIRouter()

# Install dark theme on the router
fsd.install(router)

# Include the router in the app
app.include_router(router)

_file_access: Optional[FileAccess] = None


def get_file_access() -> FileAccess:
    """Process-wide coordinator; one browse session shared by all requests."""
    global _file_access
    if _file_access is None:
        settings = load_config()
        _file_access = FileAccess(settings=settings)
    return _file_access


def _handle_for(container_id: str, host: Optional[str], access: FileAccess) -> ContainerHandle:
    if host:
        return ContainerHandle.nested(host, container_id, runtime=access.settings.runtime)
    return ContainerHandle.direct(container_id)


def _raise_http(e: DcviewError):
    if isinstance(e, NotFound):
        raise HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (NotARegularFile, UnsupportedArchitecture, MissingPayload)):
        raise HTTPException(status_code=400, detail=str(e))
    if isinstance(e, (AllStrategiesExhausted, CommandFailed)):
        raise HTTPException(status_code=502, detail=str(e))
    raise HTTPException(status_code=500, detail=str(e))


@app.get("/health")
def health():
    return {"status": "ok", "version": __version__}


@app.get("/containers/{container_id}/files")
def list_files(
    container_id: str,
    path: str = Query(default="/", description="Absolute directory path inside the container"),
    host: Optional[str] = Query(default=None, description="DinD host container, for nested targets"),
    access: FileAccess = Depends(get_file_access),
):
    """
    ## List files

    List one directory inside a running container.

    - Tries the container's own `ls -la` first, then the injected helper.
    - Example: `/containers/abc123/files?path=/etc`
    - Nested: `/containers/dind456/files?path=/&host=host123`
    """
    handle = _handle_for(container_id, host, access)
    try:
        entries = access.list_files(handle, path)
    except DcviewError as e:
        _raise_http(e)

    return {
        "container": handle.title,
        "path": path,
        "entries": [entry.to_dict() for entry in entries],
    }


@app.get("/containers/{container_id}/file")
def read_file(
    container_id: str,
    path: str = Query(..., description="Absolute file path inside the container, e.g., /etc/passwd"),
    host: Optional[str] = Query(default=None, description="DinD host container, for nested targets"),
    as_text: bool = Query(default=False, description="Render as plain text in browser instead of downloading"),
    access: FileAccess = Depends(get_file_access),
):
    """
    ## Read file

    Return the raw content of one file from a running container.

    - `as_text=true` renders inline instead of as a download.
    """
    handle = _handle_for(container_id, host, access)
    try:
        content = access.read_file(handle, path)
    except DcviewError as e:
        _raise_http(e)

    filename = Path(path).name or "file"
    headers = {"Content-Length": str(len(content))}

    if as_text:
        headers["Content-Disposition"] = f'inline; filename="{filename}"'
        return Response(
            content=content,
            media_type="text/plain; charset=utf-8",
            headers=headers,
        )

    headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return Response(
        content=content,
        media_type="application/octet-stream",
        headers=headers,
    )


@app.post("/containers/{container_id}/helper")
def inject_helper(
    container_id: str,
    host: Optional[str] = Query(default=None, description="DinD host container, for nested targets"),
    access: FileAccess = Depends(get_file_access),
):
    """
    ## Inject helper

    Install the static helper binary into the container ahead of browsing.
    """
    handle = _handle_for(container_id, host, access)
    try:
        helper_path = access.inject_helper(handle)
    except DcviewError as e:
        _raise_http(e)

    return {"container": handle.title, "helper_path": helper_path}
