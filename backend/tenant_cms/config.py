import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Cache (Flask-Caching)
    CACHE_TYPE = os.getenv("CACHE_TYPE", "SimpleCache")
    CACHE_DEFAULT_TIMEOUT = int(os.getenv("CACHE_DEFAULT_TIMEOUT", "3600"))

    # Media
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "uploads")
    MEDIA_URL_PREFIX = os.getenv("MEDIA_URL_PREFIX", "/uploads")
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(20 * 1024 * 1024)))

    # Tenants
    MASTER_TENANT_ID = os.getenv("MASTER_TENANT_ID", "1")
    MASTER_BRAND_NAME = os.getenv("MASTER_BRAND_NAME")
    SERVER_IP = os.getenv("SERVER_IP")

    # Frontend revalidation + webhooks
    FRONTEND_URL = os.getenv("FRONTEND_URL")
    REVALIDATION_SECRET = os.getenv("REVALIDATION_SECRET", "")
    CONTENT_CHANGE_NOTIFICATIONS = _env_bool("CONTENT_CHANGE_NOTIFICATIONS", True)

    # Deployment
    DEPLOYMENT_MODE = os.getenv("DEPLOYMENT_MODE", "development")
    NGINX_SITES_AVAILABLE = os.getenv("NGINX_SITES_AVAILABLE", "/etc/nginx/sites-available")
    NGINX_SITES_ENABLED = os.getenv("NGINX_SITES_ENABLED", "/etc/nginx/sites-enabled")
    NGINX_DEV_CONFIG_DIR = os.getenv("NGINX_DEV_CONFIG_DIR", "storage/nginx")
    NGINX_BINARY = os.getenv("NGINX_BINARY", "nginx")
    CERTBOT_BINARY = os.getenv("CERTBOT_BINARY", "certbot")
    SSL_EMAIL = os.getenv("SSL_EMAIL", "admin@example.com")
    DEPLOYMENT_BASE_PATH = os.getenv("DEPLOYMENT_BASE_PATH", "/var/www/tenants")
    BACKEND_UPSTREAM = os.getenv("BACKEND_UPSTREAM", "http://127.0.0.1:8000")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.getenv("DEV_DATABASE_URI", "sqlite:///tenant_cms_dev.db")


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length"
    CACHE_TYPE = "SimpleCache"
    CONTENT_CHANGE_NOTIFICATIONS = False
    DEPLOYMENT_MODE = "development"


class ProductionConfig(BaseConfig):
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URI")
    DEPLOYMENT_MODE = os.getenv("DEPLOYMENT_MODE", "production")


config_by_name = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}
