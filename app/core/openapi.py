"""OpenAPI metadata and customization utilities.

Provides a helper to enrich the generated OpenAPI schema with:
- Tags metadata
- The ``X-User-Id`` session header as a security scheme, with health and
  auth endpoints exempted

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {"name": "Auth", "description": "Registration, login and logout (session lifecycle)."},
    {"name": "Todos", "description": "Todo CRUD with per-user caching."},
    {"name": "Profile", "description": "The caller's own profile."},
    {"name": "Admin", "description": "User/todo administration and aggregates."},
    {"name": "Store", "description": "Operational view over the shared key-value store."},
    {"name": "Health", "description": "Liveness and dependency checks."},
]

PUBLIC_PATH_PREFIXES = ("/health", "/auth/register", "/auth/login")


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and the session scheme."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "SessionUser",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-User-Id",
                "description": "Id of a user with a live session (obtained via /auth/login).",
            },
        )
        schema.setdefault("security", [{"SessionUser": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        tags.extend(tag for tag in TAGS_METADATA if tag["name"] not in existing_tag_names)

        for path, methods in schema.get("paths", {}).items():
            if path.startswith(PUBLIC_PATH_PREFIXES):
                for method_obj in methods.values():
                    if isinstance(method_obj, dict):
                        method_obj["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
