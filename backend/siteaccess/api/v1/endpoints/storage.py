from fastapi import APIRouter, HTTPException, status

from siteaccess.api.deps import EvaluatorDep
from siteaccess.core.messages import StorageMessages
from siteaccess.schemas.storage import StorageAccessRead
from siteaccess.services import storage as storage_service

router = APIRouter()


@router.get("/{bucket}/{path:path}", response_model=StorageAccessRead)
async def check_object_access(bucket: str, path: str, evaluator: EvaluatorDep) -> StorageAccessRead:
    tier = storage_service.bucket_tier(bucket)
    if tier is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=StorageMessages.UNKNOWN_BUCKET)
    allowed = await storage_service.can_access_object(evaluator, bucket, path)
    return StorageAccessRead(bucket=bucket, path=path, tier=tier, allowed=allowed)
