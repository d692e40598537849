from fastapi import APIRouter, Depends, File, UploadFile
from influencore.api.deps import get_owner_id
from influencore.services.storage import generate_file_key, upload_file

router = APIRouter()

@router.post("/media", status_code=201)
async def upload_media(file: UploadFile = File(...), owner_id: str = Depends(get_owner_id)):
    """store a media file for use in generated videos"""
    data = await file.read()
    key = generate_file_key(owner_id, "media", file.filename or "upload")
    url = upload_file(data, key, file.content_type)

    return {
        "success": True,
        "data": {
            "url": url,
            "key": key,
            "size": len(data),
            "content_type": file.content_type
        }
    }
