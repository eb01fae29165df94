from __future__ import annotations
from typing import Dict, List

from fastapi import APIRouter, Depends

from sheetsync.auth import require_api_key
from sheetsync.commands import registry
from sheetsync.deps import get_import_context
from sheetsync.schemas import CommandOutcome
from sheetsync.services.importer import ImportContext

router = APIRouter(prefix="/api/v1/commands", tags=["commands"], dependencies=[Depends(require_api_key)])


@router.get("", response_model=List[Dict[str, str]])
async def list_commands():
    return registry.available()


@router.post("/{command_id}", response_model=CommandOutcome)
async def run_command(command_id: str, ctx: ImportContext = Depends(get_import_context)):
    """Blocking: responds once the command has finished, success or failure."""
    return await registry.dispatch(command_id, ctx)
