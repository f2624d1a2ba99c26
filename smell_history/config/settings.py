from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The only input the history core needs from its surroundings is the
    directory under which repositories are stored; everything else tunes
    how git is invoked and how much gets logged.
    """

    # Directory holding one bare (or regular) repository per subdirectory
    REPO_ROOT: str = "./repos"

    # Path to the git executable, None uses whatever GitPython finds on PATH
    GIT_EXECUTABLE: Optional[str] = None

    # Bytes read from a live git pipe per iteration of a stream
    STREAM_CHUNK_SIZE: int = 65536

    LOG_LEVEL: str = "INFO"

    # Development and debugging
    DEBUG: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
