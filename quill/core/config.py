"""
애플리케이션 설정
"""

from pydantic_settings import BaseSettings
from pathlib import Path
from dotenv import load_dotenv


"""env 로딩 우선순위
1) OS 환경변수
2) 프로젝트 루트의 .env
"""

# .env 사전 로드 (OS 환경변수 우선, override=False)
_here = Path(__file__).resolve()
_repo_root_env = _here.parents[2] / ".env"
if _repo_root_env.exists():
    load_dotenv(dotenv_path=str(_repo_root_env), override=False)


class Settings(BaseSettings):
    """애플리케이션 설정"""
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite+aiosqlite:///./data/quill.db"

    # unique_hash 바이트 수 (hex 인코딩 시 2배 길이)
    STORY_UNIQUE_HASH_BYTES: int = 6

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore'


settings = Settings()


# 환경별 설정 검증
def validate_settings(current: Settings = settings):
    """설정 검증"""
    if current.STORY_UNIQUE_HASH_BYTES <= 0:
        raise ValueError("STORY_UNIQUE_HASH_BYTES는 0보다 커야 합니다.")

    if current.ENVIRONMENT == "production":
        if current.DATABASE_URL.startswith("sqlite"):
            raise ValueError("프로덕션 환경에서는 SQLite DATABASE_URL을 사용할 수 없습니다.")

    return True


validate_settings()
