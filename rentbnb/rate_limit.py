from fastapi import Request, Response
from fastapi_limiter.depends import RateLimiter

from .auth import decode_user_id
from .config import settings


async def get_key_by_user_id_or_ip(request: Request) -> str:
    """
    Tries to get the user ID from the JWT token.
    If it fails (no token, invalid token), it falls back to the client's IP.
    """
    token = request.headers.get("Authorization")
    if token:
        try:
            scheme, jwt_token = token.split()
        except ValueError:
            scheme, jwt_token = "", ""
        if scheme.lower() == "bearer":
            user_id = decode_user_id(jwt_token)
            if user_id is not None:
                return f"user:{user_id}"
    return request.client.host if request.client else "anonymous"


def rate_limit(times: int, minutes: int = 1):
    """
    Route dependency limiting calls per user (or IP).
    Does nothing when RATE_LIMIT_ENABLED is off.
    """
    limiter = RateLimiter(times=times, minutes=minutes, identifier=get_key_by_user_id_or_ip)

    async def dependency(request: Request, response: Response):
        if not settings.RATE_LIMIT_ENABLED:
            return
        await limiter(request, response)

    return dependency
