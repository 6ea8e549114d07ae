# app/main.py

# ------------------------
# 환경 변수 로드
# ------------------------
from dotenv import load_dotenv
load_dotenv()

import logging

# ------------------------
# FastAPI, CORS 미들웨어 import
# ------------------------
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.db.base import Base, engine
from app.services.errors import StudyEngineError

# ------------------------
# 라우터 import
# ------------------------
from app.routers import study_sessions as study_sessions_router
from app.routers import timer as timer_router

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ------------------------
# 1) FastAPI 앱 생성
# ------------------------
app = FastAPI(title="Study Engine API")

# ------------------------
# 2) CORS 미들웨어 추가
#    - 기본값은 전체 허용 (CORS_ORIGINS 로 제한)
# ------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,  # 쿠키 안 쓰면 False
    allow_methods=["*"],
    allow_headers=["*"],
)

# ------------------------
# 3) 라우터 등록
# ------------------------
app.include_router(study_sessions_router.router)
app.include_router(timer_router.router)

# ------------------------
# 4) 도메인 에러 -> HTTP 응답
#    - {"detail": {"message": 코드, "detail": 설명}}
# ------------------------
@app.exception_handler(StudyEngineError)
async def study_engine_error_handler(request: Request, exc: StudyEngineError):
    logger.info("[ERROR] %s %s -> %s (%s)", request.method, request.url.path, exc.code, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": {"message": exc.code, "detail": exc.detail}},
    )

# ------------------------
# 5) 테이블 생성 (로컬/테스트)
#    - 운영 DB 는 마이그레이션으로 관리
# ------------------------
if settings.auto_create_tables:
    Base.metadata.create_all(bind=engine)

# ------------------------
# 6) Root 엔드포인트
#    - health check 용
# ------------------------
@app.get("/")
def root():
    return {"ok": True}
