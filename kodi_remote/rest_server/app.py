#!/usr/bin/env python3

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
A REST FastAPI server that controls a Kodi media player.
"""

from __future__ import annotations

from fastapi import FastAPI

import time
import os
import json

from contextlib import asynccontextmanager

from .logger import logger
from ..internal_types import *
from ..exceptions import ConfigError
from .. import (
    KodiClient,
    KodiClientConfig,
    create_kodi_client,
  )

from .api import router as api_router

DEFAULT_CONFIG_FILE = "kodi_remote_config.json"

def load_raw_config(config_file: Optional[str]=None) -> JsonableDict:
    """Loads the JSON config file named by config_file, the KODI_REMOTE_CONFIG
       environment variable, or kodi_remote_config.json in the current directory.

    Returns an empty config if no file is found, so that settings come from the
    environment.
    """
    if config_file is None:
        config_file = os.environ.get("KODI_REMOTE_CONFIG", None)
        if config_file is None or config_file == '':
            config_file = DEFAULT_CONFIG_FILE if os.path.exists(DEFAULT_CONFIG_FILE) else None
    if config_file is None:
        return {}
    try:
        with open(config_file, "r") as f:
            raw_config = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Unable to load Kodi config file {config_file}: {e}") from e
    if not isinstance(raw_config, dict):
        raise ConfigError(f"Kodi config file {config_file} must contain a JSON object")
    return raw_config

@asynccontextmanager
async def fastapi_lifetime(app: FastAPI) -> AsyncIterator[None]:
    """
    A context manager that initializes and cleans up for FastAPI.
    """

    kodi_client: Optional[KodiClient] = None
    try:
        logger.info("Kodi REST server starting up--initializing...")
        raw_config = load_raw_config()
        app.state.raw_config = raw_config
        kodi_config = KodiClientConfig.from_jsonable(raw_config)
        app.state.kodi_config = kodi_config
        app.state.launch_time = time.monotonic()
        kodi_client = create_kodi_client(config=kodi_config)
        app.state.kodi_client = kodi_client
        logger.info(f"Serving API for Kodi at {kodi_client}...")

        logger.info("Kodi REST server initialization done; starting server...")
        yield
    finally:
        logger.info("Kodi REST server shutting down--cleaning up...")
        if kodi_client is not None:
            await kodi_client.aclose()

kodi_api = FastAPI(lifespan=fastapi_lifetime)
kodi_api.include_router(api_router)
