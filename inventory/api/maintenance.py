from fastapi import APIRouter, Depends

from inventory.api.deps import get_backups
from inventory.schemas.product import RestoreRequest
from inventory.services.backup_service import BackupService

router = APIRouter(prefix="/maintenance", tags=["Maintenance"])


@router.post("/backup")
def create_backup(backups: BackupService = Depends(get_backups)):
    path = backups.create_backup()
    return {"path": str(path)}


@router.post("/restore")
def restore_backup(data: RestoreRequest, backups: BackupService = Depends(get_backups)):
    backups.restore_from_backup(data.path)
    return {"restored_from": data.path}
