from urllib.parse import urlsplit

from fastapi import APIRouter

from backend.core.settings import Settings, settings

router = APIRouter(tags=["health"])

REQUIRED_VARS = ("DATABASE_URL",)
OPTIONAL_VARS = (
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "OPENAI_API_KEY",
    "PERPLEXITY_API_KEY",
    "GEMINI_API_KEY",
    "AUTH_SECRET",
    "AUTH_URL",
)


def _database_preview(url: str) -> str:
    # Host only; credentials in the URL must never be echoed.
    if not url:
        return "NOT SET"
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.hostname or ''}..."


def environment_report(config: Settings) -> dict:
    present = {name: bool(getattr(config, name)) for name in (*REQUIRED_VARS, *OPTIONAL_VARS)}
    all_required_set = all(present[name] for name in REQUIRED_VARS)
    return {
        "status": "healthy" if all_required_set else "unhealthy",
        "message": "All required environment variables are set"
        if all_required_set
        else "Some required environment variables are missing",
        "environment": {
            **{f"has_{name.lower()}": is_set for name, is_set in present.items()},
            "environment": config.ENVIRONMENT,
            "ai_provider": config.AI_PROVIDER,
            "database_url_preview": _database_preview(config.DATABASE_URL),
        },
        "required": {name: "SET" if present[name] else "MISSING" for name in REQUIRED_VARS},
        "optional": {
            name: "SET" if present[name] else "NOT SET (optional)" for name in OPTIONAL_VARS
        },
    }


@router.get("/health")
def health_check() -> dict:
    return {"status": "ok"}


@router.get("/api/health")
def environment_health() -> dict:
    return environment_report(settings)
