"""
Application configuration, read from the environment (and a local .env file)
"""

import logging
import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Application configuration"""
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    AI_PROVIDER = os.getenv('AI_PROVIDER', 'openai')
    OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
    OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-3.5-turbo')
    ANTHROPIC_API_KEY = os.getenv('ANTHROPIC_API_KEY')
    ANTHROPIC_MODEL = os.getenv('ANTHROPIC_MODEL', 'claude-3-5-haiku-latest')
    AI_TEMPERATURE = float(os.getenv('AI_TEMPERATURE', '0.7'))
    AI_MAX_TOKENS = int(os.getenv('AI_MAX_TOKENS', '4000'))
    AI_TIMEOUT = float(os.getenv('AI_TIMEOUT', '60'))
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024  # request bodies are JSON slide lists
    CORS_ORIGINS = os.getenv(
        'CORS_ORIGINS', 'http://localhost:*,http://127.0.0.1:*'
    ).split(',')
    RATELIMIT_ENABLED = _env_flag('RATELIMIT_ENABLED', 'true')
    RATELIMIT_DEFAULT = os.getenv('RATELIMIT_DEFAULT', '100 per hour')
    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')
    PORT = int(os.getenv('PORT', '5001'))
    DEBUG = os.getenv('FLASK_ENV') == 'development'
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


def configure_logging(level: str = Config.LOG_LEVEL):
    """Configure root logging for the backend process"""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT
    )
