from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from tastebase.errors import InvalidImage, UploadError
from tastebase.services.images import (
    AVATAR_FOLDER, RECIPE_IMAGE_FOLDER, ImageHost, get_image_host,
)

router = APIRouter()


async def _upload(host: ImageHost, file: UploadFile | None, folder: str) -> dict:
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")
    data = await file.read()
    try:
        url = await host.upload(data, file.content_type, folder)
    except InvalidImage as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UploadError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"url": url}


@router.post("/upload-image")
async def upload_image(
    file: UploadFile | None = File(None),
    folder: str | None = Form(None),
    host: ImageHost = Depends(get_image_host),
):
    return await _upload(host, file, folder or RECIPE_IMAGE_FOLDER)


@router.post("/upload-avatar")
async def upload_avatar(
    file: UploadFile | None = File(None),
    host: ImageHost = Depends(get_image_host),
):
    return await _upload(host, file, AVATAR_FOLDER)
