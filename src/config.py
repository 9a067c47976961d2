import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    DEBUG = os.getenv("FLASK_DEBUG", "1") == "1"
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "postgresql://postgres@localhost:5432/store_db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.getenv("SECRET_KEY", "change_me")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Move aged stock into expired_stock before serving a request (once per day)
    EXPIRY_SWEEP_ON_REQUEST = os.getenv("EXPIRY_SWEEP_ON_REQUEST", "1") == "1"


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    EXPIRY_SWEEP_ON_REQUEST = False
