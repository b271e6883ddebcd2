# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
REST API routes for controlling a Kodi media player.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from .logger import logger
from ..internal_types import *
from .. import (
    __version__ as pkg_version,
    KodiClient,
    KodiRemoteError,
    NoActivePlayerError,
    RetryExhaustedError,
    TransportError,
  )
from ..protocol import normalize_button_name

router = APIRouter()

def get_kodi_client(request: Request) -> KodiClient:
    return request.app.state.kodi_client

def raise_http_error(e: KodiRemoteError) -> NoReturn:
    """Translates a client error into an HTTP error response."""
    status_code = 502
    if isinstance(e, NoActivePlayerError):
        status_code = 409
    elif isinstance(e, RetryExhaustedError):
        status_code = 504
    elif isinstance(e, TransportError):
        status_code = 503
    logger.info(f"Kodi request failed ({status_code}): {e}")
    raise HTTPException(status_code=status_code, detail=str(e)) from e

@router.get("/version")
async def get_version() -> Dict[str, Any]:
    return {"version": pkg_version}

@router.get("/status")
async def get_status(client: KodiClient = Depends(get_kodi_client)) -> Dict[str, Any]:
    try:
        result = await client.get_status()
    except KodiRemoteError as e:
        raise_http_error(e)
    return {"status": "on", "result": result}

@router.post("/power/on")
async def power_on(client: KodiClient = Depends(get_kodi_client)) -> Dict[str, Any]:
    try:
        await client.power_on()
    except KodiRemoteError as e:
        raise_http_error(e)
    return {"status": "on"}

@router.post("/power/off")
async def power_off(client: KodiClient = Depends(get_kodi_client)) -> Dict[str, Any]:
    try:
        await client.power_off()
    except KodiRemoteError as e:
        raise_http_error(e)
    return {"status": "off" if client.config.shutdown_enabled else "unchanged"}

@router.post("/buttons/{name}")
async def button_press(name: str, client: KodiClient = Depends(get_kodi_client)) -> Dict[str, Any]:
    try:
        await client.button_press(name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except KodiRemoteError as e:
        raise_http_error(e)
    return {"button": normalize_button_name(name)}
