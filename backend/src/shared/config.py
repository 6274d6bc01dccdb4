"""
Configuration module for Lambda handlers.
Loads all environment variables needed by the job board.
"""
import os


class Config:
    """Centralized configuration from environment variables."""

    # AWS Region
    AWS_REGION = os.environ.get('AWS_REGION', 'us-east-1')

    # DynamoDB Tables
    SPONSORS_TABLE = os.environ.get('SPONSORS_TABLE', '')
    CONTRIBUTORS_TABLE = os.environ.get('CONTRIBUTORS_TABLE', '')
    SKILLS_TABLE = os.environ.get('SKILLS_TABLE', '')
    TASKS_TABLE = os.environ.get('TASKS_TABLE', '')
    SUBMISSIONS_TABLE = os.environ.get('SUBMISSIONS_TABLE', '')

    # Session tokens
    AUTH_SECRET = os.environ.get('AUTH_SECRET', '')
    TOKEN_ALGORITHM = os.environ.get('TOKEN_ALGORITHM', 'HS256')
    TOKEN_TTL_SECONDS = int(os.environ.get('TOKEN_TTL_SECONDS', '86400'))  # 24 hours
    SESSION_COOKIE_NAME = os.environ.get('SESSION_COOKIE_NAME', 'next-auth.session-token')

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


config = Config()
