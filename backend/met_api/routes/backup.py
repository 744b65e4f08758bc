"""MET API — POST /api/backup: snapshot every repository now."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from met_api.middleware.auth import AuthModel
from met_api.routes.common import common_error_handler, require_auth
from met_api.storage import Repositories, backup_all, get_repositories

router = APIRouter(prefix="/api", tags=["Backup"])


@router.post("/backup", summary="Back up every collection")
async def backup(
    auth: AuthModel = Depends(require_auth),
    repos: Repositories = Depends(get_repositories),
) -> Dict[str, Any]:
    try:
        await backup_all(repos)
        return {"backedUp": [name for name, _ in repos.items()]}
    except Exception as e:
        raise common_error_handler(e) from e
