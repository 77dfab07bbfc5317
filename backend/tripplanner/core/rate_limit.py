from slowapi import Limiter
from slowapi.util import get_remote_address

from tripplanner.core.settings import Settings

limiter = Limiter(key_func=get_remote_address)

_limits = {
    "login": Settings.model_fields["RATE_LIMIT_LOGIN"].default,
    "register": Settings.model_fields["RATE_LIMIT_REGISTER"].default,
}


def configure_rate_limiting(settings: Settings) -> None:
    limiter.enabled = settings.ENABLE_RATE_LIMITING
    _limits["login"] = settings.RATE_LIMIT_LOGIN
    _limits["register"] = settings.RATE_LIMIT_REGISTER


def login_limit() -> str:
    return _limits["login"]


def register_limit() -> str:
    return _limits["register"]
