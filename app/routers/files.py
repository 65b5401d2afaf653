from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.file_storage import FileStorageService, get_file_storage
from app.services.task_service import TaskService

router = APIRouter()


@router.get("/download")
def download_file(
    path: str = Query(...),
    expires: int = Query(...),
    signature: str = Query(...),
    db: Session = Depends(get_db),
    storage: FileStorageService = Depends(get_file_storage),
):
    """Serve a file through a signed link issued by /tasks/files/{id}/download"""
    full_path, record = TaskService(db, storage=storage).open_file(path, expires, signature)
    return FileResponse(full_path, media_type=record.file_type, filename=record.file_name)
