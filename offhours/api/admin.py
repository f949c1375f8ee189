"""
Administrative endpoints: pairing status, group listing and whitelist.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from offhours.domain.whitelist import WhitelistResponse, WhitelistUpdate, WhitelistUpdateResponse
from offhours.infrastructure.database import DatabaseSession
from offhours.infrastructure.whitelist_store import replace_whitelist
from offhours.usecases.group_whitelist import partition_group_jids
from offhours.usecases.runtime import BotRuntime, get_runtime
from offhours.utils.time import day_key

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/qr")
async def pairing_status(runtime: BotRuntime = Depends(get_runtime)):
    """Current pairing state and, while unpaired, the latest QR payload."""
    connection = runtime.connection
    return {
        "connected": connection.connected,
        "status": connection.status,
        "qr": connection.latest_qr,
    }


@router.get("/groups")
async def list_groups(runtime: BotRuntime = Depends(get_runtime)):
    """Today's groups with display names, refreshed from the bridge when stale."""
    now = runtime.clock()
    try:
        names = await runtime.roster.directory(now)
    except Exception as e:
        logger.exception(f"Error listing groups: {e}")
        raise HTTPException(status_code=502, detail="Could not fetch groups")

    return {
        "day_key": day_key(now, runtime.settings.timezone),
        "groups": [
            {"jid": jid, "name": name, "whitelisted": jid in runtime.whitelist}
            for jid, name in sorted(names.items(), key=lambda item: item[1].lower())
        ],
    }


@router.get("/whitelist", response_model=WhitelistResponse)
async def get_whitelist(runtime: BotRuntime = Depends(get_runtime)):
    """Current whitelist. Empty means every group is eligible."""
    return WhitelistResponse(jids=runtime.whitelist.jids())


@router.post("/whitelist", response_model=WhitelistUpdateResponse)
async def update_whitelist(request: Request, runtime: BotRuntime = Depends(get_runtime)):
    """
    Replace the whitelist.

    Expects {"jids": [...]}. Entries that are not group identifiers are dropped.
    """
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON")

    try:
        update = WhitelistUpdate.model_validate(payload)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Expected {\"jids\": [string, ...]}")

    # Persist first; the live whitelist only changes once the write succeeded
    kept, _ = partition_group_jids(update.jids)
    async with DatabaseSession() as session:
        await replace_whitelist(session, kept)

    kept, dropped = runtime.whitelist.replace(update.jids)
    return WhitelistUpdateResponse(jids=kept, dropped=dropped)
