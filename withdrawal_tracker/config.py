import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///withdrawal_tracker.db")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me-in-production-please-32b")

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    ACCESS_EXPIRES = int(os.getenv("ACCESS_EXPIRES", 86400))
    REFRESH_EXPIRES = int(os.getenv("REFRESH_EXPIRES", 86400))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # form limits carried over from the request creation form
    MAX_REQUEST_AMOUNT = int(os.getenv("MAX_REQUEST_AMOUNT", 100_000_000))
    SUPPORTED_CURRENCIES = ("USD", "EUR", "AED")

class DevelopmentConfig(Config):
    DEBUG = True

class ProductionConfig(Config):
    DEBUG = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "testing-secret-key-with-enough-length"
    BCRYPT_LOG_ROUNDS = 4
    LOG_LEVEL = "DEBUG"


CONFIGS = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
