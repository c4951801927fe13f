from typing import Optional

from pydantic import BaseModel

from siteaccess.services.storage import BucketTier


class StorageAccessRead(BaseModel):
    bucket: str
    path: str
    tier: Optional[BucketTier] = None
    allowed: bool
