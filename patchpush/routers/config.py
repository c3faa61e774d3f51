"""Configuration API endpoints"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from patchpush.services.config_manager import ConfigManager
from patchpush.services.errors import GitHubAPIError
from patchpush.services.github_client import GitHubClient

router = APIRouter()


class ConfigUpdateRequest(BaseModel):
    """Request to update configuration"""

    github: dict | None = None
    patch: dict | None = None
    server: dict | None = None


class ConfigResponse(BaseModel):
    """Configuration response"""

    github: dict
    patch: dict
    server: dict


class ValidateResponse(BaseModel):
    """Validation response"""

    valid: bool
    message: str
    remaining: int | None = None


def mask_key(key: str) -> str:
    if not key:
        return ""
    if len(key) <= 8:
        return "*" * len(key)
    return key[:4] + "*" * (len(key) - 8) + key[-4:]


@router.get("", response_model=ConfigResponse)
async def get_config() -> ConfigResponse:
    """Get current configuration"""
    config = ConfigManager.get_instance().get_config()

    github = config.get("github", {})
    github["token"] = mask_key(github.get("token", ""))

    return ConfigResponse(
        github=github,
        patch=config.get("patch", {}),
        server=config.get("server", {}),
    )


@router.put("")
async def update_config(request: ConfigUpdateRequest) -> dict[str, Any]:
    """Update configuration"""
    config_manager = ConfigManager.get_instance()
    current_config = config_manager.get_config()

    # Update only provided fields
    for section in ("github", "patch", "server"):
        update = getattr(request, section)
        if update:
            current_config[section] = {**current_config.get(section, {}), **update}

    config_manager.save_config(current_config)

    return {"status": "success", "message": "Configuration updated"}


@router.post("/validate", response_model=ValidateResponse)
async def validate_config() -> ValidateResponse:
    """Validate the configured token against the GitHub rate limit endpoint"""
    config = ConfigManager.get_instance().get_config()

    try:
        client = GitHubClient.from_config(config)
        rate = await client.get_rate_limit()
    except ValueError as e:
        return ValidateResponse(valid=False, message=str(e))
    except GitHubAPIError as e:
        return ValidateResponse(valid=False, message=f"GitHub rejected the token: {e.message}")

    return ValidateResponse(
        valid=True,
        message="Successfully connected to GitHub",
        remaining=rate.remaining,
    )
