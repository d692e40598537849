import os

class Settings:
    PROJECT_NAME: str = "Influencore"
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./influencore.db")

    # empty disables the cross-process progress relay
    REDIS_URL: str = os.getenv("REDIS_URL", "")
    PROGRESS_CHANNEL_PREFIX: str = os.getenv("PROGRESS_CHANNEL_PREFIX", "job_progress:")
    # a subscriber slower than this is dropped
    NOTIFY_SEND_TIMEOUT_SECONDS: float = float(os.getenv("NOTIFY_SEND_TIMEOUT_SECONDS", "5.0"))

    # simulated work per generation phase
    JOB_PHASE_DELAY_SECONDS: float = float(os.getenv("JOB_PHASE_DELAY_SECONDS", "2.0"))

    # rate limits, in limits notation
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "true").lower() in ("1", "true", "yes")
    RATE_LIMIT_DEFAULT: str = os.getenv("RATE_LIMIT_DEFAULT", "100 per 15 minutes")
    RATE_LIMIT_GENERATION: str = os.getenv("RATE_LIMIT_GENERATION", "10 per hour")
    RATE_LIMIT_DEMO: str = os.getenv("RATE_LIMIT_DEMO", "3 per 10 minutes")

    # logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR: str = os.getenv("LOG_DIR", "")

    # mock object storage
    STORAGE_BASE_URL: str = os.getenv("AWS_S3_BUCKET_URL", "https://influencore-uploads.s3.amazonaws.com")
    MAX_UPLOAD_MB: int = int(os.getenv("MAX_UPLOAD_MB", "100"))

settings = Settings()
