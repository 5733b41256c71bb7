"""OpenAPI customization.

Adds tag descriptions and documents the throttling headers returned by the
interview endpoints, keeping documentation concerns out of the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {
        "name": "Interview",
        "description": "Question generation, answer assessment and transcription.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]

RATE_LIMIT_HEADERS_DOC = {
    "X-RateLimit-Remaining": {
        "description": "Requests left in the current window.",
        "schema": {"type": "integer"},
    },
    "X-RateLimit-Limit": {
        "description": "Requests allowed per window.",
        "schema": {"type": "integer"},
    },
    "X-RateLimit-Reset": {
        "description": "Window length in seconds.",
        "schema": {"type": "integer"},
    },
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation.

    - Adds tags metadata if not present
    - Documents X-RateLimit-* headers on every /api response
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if not path.startswith("/api/"):
                continue
            for method_obj in methods.values():
                if not isinstance(method_obj, dict):
                    continue
                for response in method_obj.get("responses", {}).values():
                    response.setdefault("headers", {}).update(RATE_LIMIT_HEADERS_DOC)

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
