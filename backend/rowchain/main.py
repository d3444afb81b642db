"""FastAPI 애플리케이션 진입점. 로깅, 미들웨어, API 라우터와 예외 처리기를 등록합니다."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from rowchain.config import settings
from rowchain.database import Base, engine
from rowchain.errors import ArchivedVersionError, ChainCorruptionError, ChainFieldChangedError
import rowchain.models  # noqa: F401 - 모델 import로 metadata 등록
from rowchain.routers import documents
from rowchain.utils.schema_sync import sync_missing_schema_objects

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="rowchain 버전 관리 문서 서비스",
    description="모든 변경 이력을 행 단위 버전 체인으로 보관하는 문서 API",
    version="1.0.0",
    debug=settings.DEBUG,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(documents.router)


@app.exception_handler(ChainCorruptionError)
def handle_chain_corruption(request: Request, exc: ChainCorruptionError):
    logger.error("[versioning] %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "버전 이력 데이터가 손상되었습니다."})


@app.exception_handler(ArchivedVersionError)
def handle_archived_version(request: Request, exc: ArchivedVersionError):
    return JSONResponse(status_code=409, content={"detail": "보관된 버전은 수정할 수 없습니다."})


@app.exception_handler(ChainFieldChangedError)
def handle_chain_field_changed(request: Request, exc: ChainFieldChangedError):
    return JSONResponse(status_code=409, content={"detail": "entity_id/version 은 직접 변경할 수 없습니다."})


@app.on_event("startup")
def ensure_schema():
    # 누락된 테이블은 생성하고, 기존 테이블에는 누락된 컬럼/인덱스만 추가한다.
    Base.metadata.create_all(bind=engine)
    sync_missing_schema_objects(engine, Base.metadata)


@app.get("/api/health")
def health_check():
    return {"status": "ok", "service": "rowchain"}
