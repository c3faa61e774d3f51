"""Patch API endpoints"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from patchpush.models.diff import GeneratedDiff
from patchpush.models.patch import (
    ApplyPatchRequest,
    ApplyPatchResponse,
    GenerateDiffRequest,
    ParseDiffRequest,
    ParseDiffResponse,
)
from patchpush.services.commit_service import PatchService
from patchpush.services.config_manager import ConfigManager
from patchpush.services.diff_generator import DiffGenerator
from patchpush.services.diff_parser import DiffParser
from patchpush.services.github_client import GitHubClient
from patchpush.services.patch_reconstructor import MAX_FILE_SIZE, build_file_changes, skipped_paths

router = APIRouter()
diff_parser = DiffParser()
diff_generator = DiffGenerator()


@router.post("/parse", response_model=ParseDiffResponse)
async def parse_diff(request: ParseDiffRequest) -> ParseDiffResponse:
    """Parse a diff and reconstruct file contents without touching GitHub"""
    config = ConfigManager.get_instance().get_config()
    max_size = request.max_file_size or config.get("patch", {}).get("maxFileSize", MAX_FILE_SIZE)

    files = diff_parser.parse(request.diff)
    changes = build_file_changes(files, request.originals, max_size=max_size, strict=request.strict)

    return ParseDiffResponse(files=files, changes=changes, skipped=skipped_paths(files))


@router.post("/diff", response_model=GeneratedDiff)
async def generate_diff(request: GenerateDiffRequest) -> GeneratedDiff:
    """Generate a unified diff between two versions of a file"""
    return diff_generator.generate_diff(request.original_content, request.new_content, request.file_path)


@router.post("/apply", response_model=ApplyPatchResponse)
async def apply_patch(request: ApplyPatchRequest) -> ApplyPatchResponse:
    """Apply a diff to a GitHub branch with the requested commit strategy"""
    config = ConfigManager.get_instance().get_config()

    try:
        client = GitHubClient.from_config(config, token=request.token)
    except ValueError as e:
        raise HTTPException(status_code=401, detail=str(e))

    service = PatchService(client, config)
    return await service.apply(request)
