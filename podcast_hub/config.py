import os

from dotenv import load_dotenv

STORAGE_BACKENDS = ("local", "s3")


class Config:
    def __init__(self, env_file=None):
        """
        Initialize configuration by loading environment variables and setting default attributes.

        Loads environment variables from the provided .env file path when `env_file` is given; otherwise
        loads from the default environment. After loading, sets database, web, authentication, object
        storage, upload limit and player attributes using environment values with sensible defaults.

        Parameters:
            env_file (str | None): Optional path to a .env file to load environment variables from.

        Raises:
            ValueError: If a setting holds a value outside its accepted range.
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        # Database configuration
        self.DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./podcast_hub.db")
        self.DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "3"))
        self.DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "2"))
        self.DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"

        # Web application configuration
        self.WEB_ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*")
        self.WEB_RATE_LIMIT = os.getenv("RATE_LIMIT", "10/minute")
        self.RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
        self.WEB_PORT = int(os.getenv("PORT", "8080"))

        # Web app base URL (used for the OAuth redirect)
        web_base_url = os.getenv("WEB_BASE_URL", "")
        if web_base_url and not web_base_url.lower().startswith(("http://", "https://")):
            raise ValueError(
                f"WEB_BASE_URL must start with http:// or https://, got: {web_base_url}"
            )
        self.WEB_BASE_URL = web_base_url.rstrip("/") if web_base_url else ""

        # Google OAuth configuration
        self.GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
        self.GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET", "")
        # Derive redirect URI from WEB_BASE_URL if not explicitly set
        self.GOOGLE_REDIRECT_URI = os.getenv(
            "GOOGLE_REDIRECT_URI",
            f"{self.WEB_BASE_URL}/auth/callback" if self.WEB_BASE_URL else ""
        )

        # JWT configuration
        self.JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_EXPIRATION_DAYS = int(os.getenv("JWT_EXPIRATION_DAYS", "7"))

        # Cookie configuration
        self.COOKIE_DOMAIN = os.getenv("COOKIE_DOMAIN", None) or None  # None = current domain
        self.COOKIE_SECURE = os.getenv("COOKIE_SECURE", "true").lower() == "true"

        # Object storage configuration
        self.STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local").lower()
        if self.STORAGE_BACKEND not in STORAGE_BACKENDS:
            raise ValueError(
                f"STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}, got: {self.STORAGE_BACKEND}"
            )
        self.STORAGE_LOCAL_ROOT = os.getenv("STORAGE_LOCAL_ROOT", "./media")
        self.STORAGE_AUTO_CREATE_BUCKETS = (
            os.getenv("STORAGE_AUTO_CREATE_BUCKETS", "true").lower() == "true"
        )

        # S3-compatible storage (R2, MinIO, AWS)
        self.S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL", "")
        self.S3_REGION = os.getenv("S3_REGION", "auto")
        self.AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID", "")
        self.AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY", "")

        default_public_url = "/media" if self.STORAGE_BACKEND == "local" else self.S3_ENDPOINT_URL
        self.STORAGE_PUBLIC_BASE_URL = os.getenv(
            "STORAGE_PUBLIC_BASE_URL", default_public_url
        ).rstrip("/")

        # Upload limits
        self.COVER_MAX_BYTES = int(os.getenv("COVER_MAX_BYTES", str(5 * 1024 * 1024)))
        self.AUDIO_MAX_BYTES = int(os.getenv("AUDIO_MAX_BYTES", str(100 * 1024 * 1024)))

        # Player configuration
        self.PLAYER_DEFAULT_VOLUME = float(os.getenv("PLAYER_DEFAULT_VOLUME", "0.8"))
        if not 0.0 <= self.PLAYER_DEFAULT_VOLUME <= 1.0:
            raise ValueError(
                f"PLAYER_DEFAULT_VOLUME must be between 0 and 1, got {self.PLAYER_DEFAULT_VOLUME}"
            )
        self.PLAYER_POLL_INTERVAL = float(os.getenv("PLAYER_POLL_INTERVAL", "0.25"))

    def load_config(self):
        """
        Prints selected configuration values useful for debugging.
        """
        print(f"Database: {self.DATABASE_URL.split('@')[-1]}")
        print(f"Storage backend: {self.STORAGE_BACKEND}")
        print(f"Storage public URL: {self.STORAGE_PUBLIC_BASE_URL}")

    @property
    def is_local_storage(self):
        '''Whether uploaded blobs are kept on the local filesystem.'''
        return self.STORAGE_BACKEND == "local"
