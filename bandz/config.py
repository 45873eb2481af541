import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    # Prompt generation relies on INSERT ... ON CONFLICT (or ON DUPLICATE KEY);
    # only SQLite, PostgreSQL and MySQL/MariaDB URLs are supported.
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///bandz.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-prod")
    PREFERRED_URL_SCHEME = "https"
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Reporting window used when a request does not pass ?days=
    REPORT_DEFAULT_DAYS = int(os.getenv("REPORT_DEFAULT_DAYS", "7"))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    LOG_LEVEL = "WARNING"
