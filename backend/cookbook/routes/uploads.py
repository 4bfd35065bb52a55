"""
Cookbook Backend — Uploaded Image Route
=========================================

What:  Serves stored recipe images at <uploads_url_prefix>/<name>.
How:   Resolves the name through UploadService (which refuses anything
       outside the uploads directory) and streams it with FileResponse.
Who:   Called by <img> tags that reference a recipe's imageUrl.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse

from cookbook.exceptions import NotFoundError, ValidationError
from cookbook.services.upload_service import UploadService

logger = logging.getLogger(__name__)

# Mounted by the app factory under settings.uploads_url_prefix
router = APIRouter(tags=["Uploads"])


@router.get(
    "/{file_name}",
    summary="Serve an uploaded recipe image",
    responses={
        200: {"description": "Image file"},
        400: {"description": "Invalid file path"},
        404: {"description": "File not found"},
    },
)
async def serve_upload(file_name: str, request: Request) -> FileResponse:
    uploads: UploadService = request.app.state.upload_service

    path = uploads.resolve_url(uploads.url_for(file_name))
    if path is None:
        raise ValidationError(message="Invalid file path", field="file_name")

    if not path.is_file():
        raise NotFoundError(resource="file", resource_id=file_name)

    # media type is guessed from the extension
    return FileResponse(
        path=str(path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
