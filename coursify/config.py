import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


class Config:
    BASE_DIR = Path(__file__).resolve().parent.parent
    DATA_DIR = Path(os.getenv("COURSIFY_DATA_DIR") or BASE_DIR / "data")
    STORE_READ_ATTEMPTS = int(os.getenv("STORE_READ_ATTEMPTS", "3"))
    STORE_READ_DELAY_MS = int(os.getenv("STORE_READ_DELAY_MS", "50"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    COURSE_STATUSES = {"draft", "published"}
    LESSON_STATUSES = {"DRAFT", "PUBLISHED", "ARCHIVED"}
    SECTION_TYPES = {"text", "video", "image", "audio", "pdf", "docx", "quiz", "mixed"}
    QUIZ_PLACEMENTS = {"end", "between_chapters"}
    DEFAULT_PASSING_SCORE = 70
    DEFAULT_TIME_LIMIT = 30


class DevConfig(Config):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG").upper()


class ProdConfig(Config):
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    STORE_READ_DELAY_MS = 1
