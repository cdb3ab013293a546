"""
Configuration settings for the application
"""

import os
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""
    
    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./crusades.db")
    USE_FIREBASE: bool = os.getenv("USE_FIREBASE", "false").lower() in ("1", "true", "yes")
    FIREBASE_CREDENTIALS_JSON: str | None = os.getenv("FIREBASE_CREDENTIALS_JSON")
    FIREBASE_CREDENTIALS_FILE: str | None = os.getenv("FIREBASE_CREDENTIALS_FILE")
    FIREBASE_CREDENTIALS_B64: str | None = os.getenv("FIREBASE_CREDENTIALS_B64")
    
    # User tokens
    JWT_SECRET: str = os.getenv("JWT_SECRET", "rhapsody_crusades_app_secret_key_change_in_production")
    JWT_ISSUER: str = os.getenv("JWT_ISSUER", "rhapsody-crusades-app")
    JWT_AUDIENCE: str = os.getenv("JWT_AUDIENCE", "rhapsody-crusades-mobile")
    JWT_EXPIRY_DAYS: int = int(os.getenv("JWT_EXPIRY_DAYS", "30"))
    JWT_REFRESH_WINDOW_DAYS: int = 7
    
    # Admin session
    ADMIN_SESSION_SECRET: str = os.getenv("ADMIN_SESSION_SECRET", "rhapsody_admin_session_secret_change_in_production")
    ADMIN_SESSION_HOURS: int = 24
    DEFAULT_ADMIN_USERNAME: str = os.getenv("DEFAULT_ADMIN_USERNAME", "admin")
    DEFAULT_ADMIN_PASSWORD: str = os.getenv("DEFAULT_ADMIN_PASSWORD", "admin123")
    
    # External crusade feed
    EXTERNAL_CRUSADES_URL: str = os.getenv("EXTERNAL_CRUSADES_URL", "https://rhapsodycrusades.org/data/crusades.json")
    FEED_CACHE_TTL_SECONDS: int = 300
    FEED_CACHE_BACKEND: str = os.getenv("FEED_CACHE_BACKEND", "memory")  # memory, firestore
    HTTP_TIMEOUT_SECONDS: float = 10.0
    
    # KingsChat login
    KINGSCHAT_API_URL: str = os.getenv("KINGSCHAT_API_URL", "https://connect.kingsch.at/api/profile")
    APP_SCHEME: str = os.getenv("APP_SCHEME", "rhapsodycrusades")
    
    # Passwords
    BCRYPT_ROUNDS: int = 12
    PASSWORD_RESET_TTL_MINUTES: int = 60
    RETURN_RESET_TOKEN: bool = os.getenv("RETURN_RESET_TOKEN", "false").lower() in ("1", "true", "yes")
    
    # Application
    BASE_URL: str = os.getenv("BASE_URL", "http://localhost:8000")
    
    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://localhost:8081",
    ]
    
    class Config:
        env_file = ".env"

settings = Settings()
