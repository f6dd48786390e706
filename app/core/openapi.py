"""OpenAPI metadata and customization utilities.

Adds tag descriptions and the ``X-API-Key`` security scheme. Admin and
newsletter send operations require the key; public endpoints are rate
limited instead.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

# Operations behind the X-API-Key dependency
_SECURED_PATH_PREFIXES = ("/api/admin/", "/api/newsletters/")

_TAGS = [
    {"name": "Contact", "description": "Contact form submissions (rate limited)."},
    {"name": "Newsletter", "description": "Newsletter subscriptions and sends (rate limited)."},
    {"name": "Admin", "description": "Maintenance endpoints; require X-API-Key."},
    {"name": "Health", "description": "Liveness and store readiness checks."},
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and admin security."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Admin API key sent via the X-API-Key header.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in _TAGS:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if not path.startswith(_SECURED_PATH_PREFIXES):
                continue
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj["security"] = [{"ApiKeyAuth": []}]

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
