"""
Fixed HTML pages for the donation site.
"""

from pathlib import Path
from fastapi import APIRouter
from fastapi.responses import FileResponse

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"

router = APIRouter(tags=["pages"])


def _page(name: str) -> FileResponse:
    return FileResponse(STATIC_DIR / name, media_type="text/html")


@router.get("/", include_in_schema=False)
async def index() -> FileResponse:
    return _page("index.html")


@router.get("/donate", include_in_schema=False)
async def donate() -> FileResponse:
    return _page("donate.html")


# Checkout redirect targets
@router.get("/donate-success.html", include_in_schema=False)
async def donate_success() -> FileResponse:
    return _page("donate-success.html")


@router.get("/donate-cancel.html", include_in_schema=False)
async def donate_cancel() -> FileResponse:
    return _page("donate-cancel.html")
