# app/config.py


from dotenv import load_dotenv
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()  # .env 파일 먼저 읽기

BASE_DIR = Path(__file__).resolve().parent.parent

class Settings(BaseSettings):
    # 환경 구분
    app_env: str = "local"
    log_level: str = "INFO"

    # DB 필수 설정
    database_url: str                        # DATABASE_URL
    db_pool_size: int = 30
    auto_create_tables: bool = True          # 로컬/테스트용 테이블 자동 생성

    # 인증 (Bearer JWT, HS256)
    jwt_secret: str                          # JWT_SECRET
    jwt_audience: str | None = None          # JWT_AUDIENCE

    cors_origins: list[str] = ["*"]

    # 학습 세션 기본값
    default_study_mode: str = "front-to-end"

    # 타이머 기본값 (초 단위)
    timer_work_duration: int = 1500
    timer_rest_duration: int = 300
    auto_advance_debounce_seconds: int = 3

    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),  # 루트 .env 절대경로
        env_file_encoding="utf-8",
        extra="ignore",                   # 필요 없는 env 무시
    )

settings = Settings()
