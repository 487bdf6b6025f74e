from __future__ import annotations

import base64
import binascii

from storygraph.modules.story_data.diagnostics import error
from storygraph.modules.story_data.schemas import Diagnostic

CODE_ASSET_SHAPE = "asset_shape"
CODE_ASSET_TOO_LARGE = "asset_too_large"
CODE_ASSET_SIGNATURE = "asset_signature"

_MIN_SNIFF_BYTES = 12


def has_known_signature(data: bytes) -> bool:
    """True for PNG, JPEG, GIF, WEBP, OGG, WAV and MP3 payloads."""
    if len(data) < _MIN_SNIFF_BYTES:
        return False
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return True
    if data.startswith(b"\xff\xd8\xff"):
        return True
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return True
    if data[:4] == b"RIFF" and data[8:12] in (b"WEBP", b"WAVE"):
        return True
    if data[:4] == b"OggS" or data[:3] == b"ID3":
        return True
    # MPEG audio frame sync.
    return data[0] == 0xFF and (data[1] & 0xE0) == 0xE0


def validate_assets(assets: list[object], *, max_bytes: int) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for index, asset in enumerate(assets):
        if not isinstance(asset, dict) or not isinstance(asset.get("name"), str) or not isinstance(asset.get("base64"), str):
            diagnostics.append(error(CODE_ASSET_SHAPE, "Invalid asset payload shape", {"index": index}))
            continue
        name = asset["name"]
        try:
            data = base64.b64decode(asset["base64"])
        except (binascii.Error, ValueError):
            diagnostics.append(error(CODE_ASSET_SHAPE, f"Asset is not valid base64: {name}", {"asset": name}))
            continue
        if len(data) > max_bytes:
            diagnostics.append(
                error(
                    CODE_ASSET_TOO_LARGE,
                    f"Asset too large: {name}",
                    {"asset": name, "bytes": len(data), "maxBytes": max_bytes},
                )
            )
            continue
        if not has_known_signature(data):
            diagnostics.append(error(CODE_ASSET_SIGNATURE, f"Unsupported or unsafe asset type: {name}", {"asset": name}))
    return diagnostics
