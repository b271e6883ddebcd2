# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
A REST FastAPI server that controls a Kodi media player.
"""
from .app import kodi_api, load_raw_config
from .api import router, get_kodi_client
