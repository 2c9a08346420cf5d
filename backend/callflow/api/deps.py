from typing import Dict

from fastapi import Request

from ..config import Settings
from ..services.retell_client import RetellClient
from ..services.telephony import ProviderName, TelephonyProvider


def get_db(request: Request):
    return request.app.state.db


def get_providers(request: Request) -> Dict[ProviderName, TelephonyProvider]:
    return request.app.state.providers


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_retell(request: Request) -> RetellClient:
    return request.app.state.providers[ProviderName.RETELL]
