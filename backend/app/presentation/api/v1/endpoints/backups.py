"""Backup endpoints — list, create and restore snapshots of the site's data files."""

from fastapi import APIRouter, Depends, Header, HTTPException, status

from app.application.schemas import BackupResponse, CreateBackupResponse, RestoreBackupResponse
from app.application.services import BackupManager
from app.domain.entities import ClientRole
from app.domain.exceptions import BackupError, BackupNotFoundError
from app.infrastructure.dependencies import get_backup_manager

router = APIRouter(prefix="/backups", tags=["Backups"])


@router.get("", response_model=list[BackupResponse])
async def list_backups(
    backup_manager: BackupManager = Depends(get_backup_manager),
) -> list[BackupResponse]:
    """All backups on disk, newest first."""
    return [BackupResponse(**b) for b in backup_manager.list_backups()]


@router.post("", response_model=CreateBackupResponse, status_code=status.HTTP_201_CREATED)
async def create_backup(
    backup_manager: BackupManager = Depends(get_backup_manager),
) -> CreateBackupResponse:
    """Take a backup now."""
    if not await backup_manager.create_backup():
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Backup failed",
        )
    last_backup = backup_manager.last_backup
    return CreateBackupResponse(
        success=True,
        last_backup=last_backup.isoformat() if last_backup else None,
    )


@router.post("/{backup_id}/restore", response_model=RestoreBackupResponse)
async def restore_backup(
    backup_id: str,
    x_source: str | None = Header(None),
    backup_manager: BackupManager = Depends(get_backup_manager),
) -> RestoreBackupResponse:
    """Put a backup's files back in place (developer only).

    The current files are backed up first; connected clients receive a
    ``database_restored`` message.
    """
    if x_source != ClientRole.DEV_ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the developer can restore backups",
        )
    try:
        restored = await backup_manager.restore_backup(backup_id)
    except BackupNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except BackupError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return RestoreBackupResponse(success=True, backup_id=backup_id, restored_files=restored)
