from datetime import timedelta
import os
from dotenv import load_dotenv

load_dotenv()
class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///kansaco.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=24)
    BCRYPT_LOG_ROUNDS = 12
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    MAX_CONTENT_LENGTH = 110 * 1024 * 1024  # up to 10 images of 10MB per request

    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", 587))
    MAIL_USE_TLS = True
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", os.getenv("MAIL_USERNAME"))
    EMAIL_TO = os.getenv("EMAIL_TO", "ventas@kansaco.com")

    # DigitalOcean Spaces (S3 compatible)
    DO_BUCKET = os.getenv("DO_BUCKET", "kansaco-images")
    DO_REGION = os.getenv("DO_REGION", "nyc3")
    DO_SPACES_ENDPOINT = os.getenv("DO_SPACES_ENDPOINT")
    DO_ACCESS_KEY = os.getenv("DO_ACCESS_KEY")
    DO_SECRET_KEY = os.getenv("DO_SECRET_KEY")
    DO_BASE_URL = os.getenv("DO_BASE_URL")
    DO_CDN_URL = os.getenv("DO_CDN_URL")

    RABBITMQ_URL = os.getenv("RABBITMQ_URL")
    RABBITMQ_QUEUE = os.getenv("RABBITMQ_QUEUE", "intranet_queue")
    RABBITMQ_PRESUPUESTO_QUEUE = os.getenv("RABBITMQ_PRESUPUESTO_QUEUE", "presupuesto_queue")

    SEED_ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL")
    SEED_ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD")

