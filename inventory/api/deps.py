from fastapi import Request

from inventory.services.backup_service import BackupService
from inventory.services.ledger_service import LedgerService


def get_ledger(request: Request) -> LedgerService:
    return request.app.state.ledger


def get_backups(request: Request) -> BackupService:
    return request.app.state.backups
