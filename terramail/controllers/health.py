from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from terramail.dependencies import get_store
from terramail.store import Store

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(store: Store = Depends(get_store)):
    """Store reachability check."""
    reachable = await asyncio.to_thread(store.ping)
    body = {
        "status": "ok" if reachable else "error",
        "database": "connected" if reachable else "unavailable",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return JSONResponse(body, status_code=200 if reachable else 503)
