"""환경 변수 기반 애플리케이션 설정을 중앙에서 관리합니다."""

from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./rowchain.db"
    DEBUG: bool = True
    SQL_ECHO: bool = False
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # 주요 수정 저장 시 현재 행을 SELECT ... FOR UPDATE 로 잠근 뒤 다음 버전을 할당한다.
    # SQLite 에서는 FOR UPDATE 가 무시된다.
    VERSIONING_LOCK_CURRENT_ROW: bool = True

    class Config:
        # 실행 cwd와 무관하게 backend/.env를 로드한다.
        env_file = str(Path(__file__).resolve().parents[1] / ".env")


settings = Settings()
