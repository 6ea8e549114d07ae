# app/services/auth.py
from typing import Dict
from jose import JWTError, jwt
from app.config import settings
import logging

logger = logging.getLogger(__name__)

JWT_SECRET = settings.jwt_secret

if not JWT_SECRET:
    raise RuntimeError("JWT_SECRET 환경변수가 설정되어 있지 않습니다.")


async def verify_bearer(authorization: str | None) -> Dict[str, str | None]:
    if not authorization:
        raise ValueError("missing Authorization header")

    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise ValueError("invalid Authorization header")

    token = parts[1].strip()
    if not token:
        raise ValueError("invalid Authorization header")

    try:
        claims = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            audience=settings.jwt_audience,
            options={
                "verify_aud": settings.jwt_audience is not None,
            },
        )
    except JWTError as e:
        logger.warning("[AUTH] JWT decode failed: %s", e)
        raise ValueError("invalid token") from e

    user_id = claims.get("sub")
    email = claims.get("email")

    if not user_id:
        raise ValueError("invalid token: missing sub")

    return {
        "user_id": str(user_id),
        "email": email,
    }
