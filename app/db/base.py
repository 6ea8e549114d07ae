"""
공용 DB 베이스/세션 팩토리.
SessionLocal, engine, Base 정의는 app.db.session 한 곳에서 관리한다.
모델 모듈을 여기서 import 해두어야 Base.metadata 에 모든 테이블이 등록된다.
"""
from app.db.session import engine, SessionLocal, Base

from app.models import question, study_session, timer  # noqa: F401

__all__ = ["engine", "SessionLocal", "Base"]
