from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from storygraph.modules.packaging import service
from storygraph.modules.packaging.schemas import StoryPackage
from storygraph.modules.story_data.errors import PackageImportError, StoryDataError

router = APIRouter(prefix="/api/packages", tags=["packages"])


@router.get("/export")
def export_package(
    story_id: str = Query(..., alias="storyId"),
    version: str = Query(...),
    title: str = Query(...),
    author: str = Query(...),
):
    try:
        return service.export_package(story_id=story_id, version=version, title=title, author=author)
    except PackageImportError as exc:
        raise HTTPException(status_code=422, detail=exc.to_detail()) from exc
    except StoryDataError as exc:
        raise HTTPException(status_code=500, detail=exc.to_detail()) from exc


@router.post("/import")
def import_package(package: StoryPackage):
    try:
        return service.import_package(package)
    except PackageImportError as exc:
        raise HTTPException(status_code=422, detail=exc.to_detail()) from exc
