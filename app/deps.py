# app/deps.py
import logging
import random

from fastapi import Header, HTTPException
from app.db.base import SessionLocal
from app.services.auth import verify_bearer
from app.services.clock import utcnow

logger = logging.getLogger(__name__)

_rng = random.Random()

# ----------------------------
# DB 세션
# 요청 하나 = 트랜잭션 하나. 중간에 실패하면 전부 롤백
# ----------------------------
def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()  # commit 포함
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

# ----------------------------
# 현재 사용자 가져오기
# ----------------------------
async def get_current_user(
    authorization: str | None = Header(None),
):
    try:
        claims = await verify_bearer(authorization)
    except ValueError as e:
        logger.warning("[AUTH] verify_bearer failed: %s", e)
        raise HTTPException(status_code=401, detail="unauthorized")

    return {
        "id": claims["user_id"],
        "email": claims.get("email"),
    }

# ----------------------------
# 시계 / 난수 (테스트에서 dependency_overrides 로 교체)
# ----------------------------
def get_clock():
    return utcnow


def get_rng():
    return _rng
