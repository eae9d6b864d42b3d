from typing import Any, List

from fastapi import APIRouter, Depends, File, UploadFile

from cbdra.api.deps import get_current_active_user
from cbdra.models import User
from cbdra.schemas import UploadResult
from cbdra.services.uploads import save_files

router = APIRouter()


@router.post("/upload", response_model=UploadResult)
async def upload_files(
    files: List[UploadFile] = File(default=[]),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    """
    Upload incident images and videos. Nothing is stored unless every file is valid.
    """
    urls = await save_files(files)
    return {"message": "Files uploaded successfully", "files": urls}
