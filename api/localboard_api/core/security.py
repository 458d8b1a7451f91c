from fastapi import Depends, Header, HTTPException, Request, status

from localboard_api.core.auth import key_in, parse_bearer_token
from localboard_api.core.config import Settings, get_settings


async def require_admin_key(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> None:
    allowed = settings.admin_keys
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="admin API keys are not configured",
        )

    supplied = request.headers.get(settings.api_key_header)
    if not supplied:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"admin routes require {settings.api_key_header}",
        )
    if not key_in(supplied, allowed):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid API key")


async def require_moderation_trigger(
    settings: Settings = Depends(get_settings),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> None:
    # The trigger is open when no shared secret is configured.
    if not settings.moderation_secret:
        return

    token = parse_bearer_token(authorization)
    if not token or not key_in(token, [settings.moderation_secret]):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized")


async def get_delete_credential(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> str:
    credential = request.headers.get(settings.delete_auth_header)
    if not credential:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"missing {settings.delete_auth_header} header",
        )
    return credential
