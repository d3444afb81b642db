"""rowchain: SQLAlchemy 행 단위 버전 관리 엔진과 예제 API 패키지입니다."""
