"""Tenant resolution for HTTP requests (authentication happens upstream)"""

import logging

from fastapi import Header, HTTPException

from ..shared.validators import validate_uuid

logger = logging.getLogger(__name__)


async def get_tenant_id(x_tenant_id: str = Header(...)) -> str:
    """Tenant id set by the auth gateway in the X-Tenant-ID header"""
    if not validate_uuid(x_tenant_id):
        logger.warning(f"⚠️ Rejected request with malformed tenant id: {x_tenant_id!r}")
        raise HTTPException(status_code=400, detail="Invalid tenant id")
    return x_tenant_id
