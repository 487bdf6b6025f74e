from __future__ import annotations

from typing import NoReturn

from fastapi import APIRouter, HTTPException

from storygraph.modules.authoring import service
from storygraph.modules.story_data import StoryModel
from storygraph.modules.story_data.errors import StoryDataError

router = APIRouter(prefix="/api/authoring", tags=["authoring"])


def _raise_fatal(exc: StoryDataError) -> NoReturn:
    raise HTTPException(status_code=500, detail=exc.to_detail()) from exc


@router.get("/load")
def load_story():
    try:
        return service.load_story()
    except StoryDataError as exc:
        _raise_fatal(exc)


@router.post("/validate")
def validate_story(model: StoryModel):
    return service.validate_story(model)


@router.post("/save")
def save_story(model: StoryModel):
    try:
        outcome = service.save_story(model)
    except StoryDataError as exc:
        _raise_fatal(exc)
    if not outcome["success"]:
        raise HTTPException(
            status_code=400,
            detail={
                "code": "VALIDATION_FAILED",
                "message": "Validation failed",
                "errors": outcome["errors"],
                "warnings": outcome["warnings"],
            },
        )
    return outcome


@router.post("/save-draft")
def save_draft(model: StoryModel):
    try:
        return service.save_draft(model)
    except StoryDataError as exc:
        _raise_fatal(exc)


@router.get("/load-draft")
def load_draft():
    try:
        return service.load_draft()
    except StoryDataError as exc:
        _raise_fatal(exc)
