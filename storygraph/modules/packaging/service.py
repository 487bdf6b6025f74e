from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from storygraph.config import settings
from storygraph.modules.authoring.service import check_story, load_current_model, model_payload
from storygraph.modules.packaging.assets import validate_assets
from storygraph.modules.packaging.sanitize import sanitize_model_text_fields
from storygraph.modules.packaging.schemas import (
    MANIFEST_REQUIRED_FIELDS,
    StoryPackage,
    is_valid_manifest,
    manifest_problems,
)
from storygraph.modules.story_data import StoryModel
from storygraph.modules.story_data.diagnostics import attach_files, dump_diagnostics
from storygraph.modules.story_data.errors import (
    PACKAGE_INVALID_MANIFEST,
    PACKAGE_INVALID_PAYLOAD,
    PackageImportError,
)
from storygraph.utils.time import utc_now_iso

logger = logging.getLogger(__name__)


def export_package(*, story_id: str, version: str, title: str, author: str) -> dict[str, Any]:
    manifest = {
        "storyId": story_id,
        "version": version,
        "title": title,
        "author": author,
        "exportedAt": utc_now_iso(),
    }
    if not is_valid_manifest(manifest):
        raise PackageImportError(
            code=PACKAGE_INVALID_MANIFEST,
            message="Manifest fields must be non-empty strings",
            hint=f"Provide {', '.join(MANIFEST_REQUIRED_FIELDS)}.",
        )
    model, _duplicates = load_current_model()
    logger.info("Exported story package %s@%s", story_id, version)
    return {"manifest": manifest, "model": model_payload(model), "assets": []}


def import_package(package: StoryPackage) -> dict[str, Any]:
    problems = manifest_problems(package.manifest)
    if problems:
        raise PackageImportError(
            code=PACKAGE_INVALID_MANIFEST,
            message=f"Invalid package manifest: {problems[0]}",
            hint=f"Manifest needs non-empty {', '.join(MANIFEST_REQUIRED_FIELDS)}.",
        )

    asset_diagnostics = validate_assets(package.assets, max_bytes=settings.package_max_asset_bytes)
    sanitized = sanitize_model_text_fields(package.model)
    try:
        model = StoryModel.model_validate(sanitized)
    except ValidationError as exc:
        raise PackageImportError(
            code=PACKAGE_INVALID_PAYLOAD,
            message=f"Package model does not match the story schema ({exc.error_count()} problems)",
        ) from exc

    result = check_story(model)
    accepted = result.ok and not asset_diagnostics
    logger.info(
        "Imported package %s: accepted=%s (%d errors, %d asset problems)",
        package.manifest.get("storyId"),
        accepted,
        len(result.errors),
        len(asset_diagnostics),
    )
    return {
        "accepted": accepted,
        "manifest": package.manifest,
        "model": model_payload(model),
        "errors": dump_diagnostics(attach_files(result.errors)),
        "warnings": dump_diagnostics(attach_files(result.warnings)),
        "assetDiagnostics": dump_diagnostics(asset_diagnostics),
    }
