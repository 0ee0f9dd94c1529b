# config.py
import os
from decimal import Decimal
from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, "..", ".env"))


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "sixstring-session-secret")

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///sixstring_market.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JSON_AS_ASCII = False

    # JWT for API access
    JWT_SECRET = os.getenv("JWT_SECRET", "devsecret")
    JWT_ALGO = os.getenv("JWT_ALGO", "HS256")
    JWT_TTL_HOURS = int(os.getenv("JWT_TTL_HOURS", "6"))

    # Checkout
    COD_FEE = Decimal(os.getenv("COD_FEE", "5.00"))
    BANK_NAME = os.getenv("BANK_NAME", "Balgarska Banka AD")
    BANK_OWNER = os.getenv("BANK_OWNER", "SixStringMarket Ltd")
    BANK_IBAN = os.getenv("BANK_IBAN", "BG80BNBG96611020345678")
    BANK_BIC = os.getenv("BANK_BIC", "BNBGBGSD")

    # Listing images
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", os.path.abspath("uploads"))
    IMAGE_MAX_WIDTH = int(os.getenv("IMAGE_MAX_WIDTH", "800"))
    IMAGE_MAX_HEIGHT = int(os.getenv("IMAGE_MAX_HEIGHT", "600"))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE")

    @staticmethod
    def init_app(app):
        os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET = "test-secret"
    LOG_FILE = None
