import os

from dotenv import load_dotenv


class Config:
    def __init__(self, env_file=None):
        """
        Initialize configuration by loading environment variables and setting default attributes.

        Loads environment variables from the provided .env file path when `env_file` is given; otherwise loads from the default environment. After loading, sets database, web server, logging and bootstrap-account settings using environment values with sensible defaults.
        Parameters:
            env_file (str | None): Optional path to a .env file to load environment variables from. If omitted, the default environment or default .env discovery is used.

        Raises:
            ValueError: If a numeric setting is out of range or the database URL is empty.
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        # Database configuration
        self.DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./podsync.db")
        if not self.DATABASE_URL:
            raise ValueError("DATABASE_URL cannot be empty")
        self.DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
        self.DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "10"))
        self.DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"

        # Web application configuration
        self.WEB_ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*")
        self.WEB_RATE_LIMIT = os.getenv("RATE_LIMIT", "60/minute")
        self.WEB_PORT = int(os.getenv("PORT", "8080"))
        if not 1 <= self.WEB_PORT <= 65535:
            raise ValueError(f"PORT must be between 1 and 65535, got {self.WEB_PORT}")

        # Logging
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

        # Bootstrap account, created at startup if it does not exist yet
        self.ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "") or None

    def load_config(self):
        """
        Prints selected configuration values useful for debugging.
        """
        print(f"Database: {self.database_location}")
        print(f"Port: {self.WEB_PORT}")

    @property
    def database_location(self):
        '''Database URL with any credentials stripped.'''
        if "@" in self.DATABASE_URL:
            return "..." + "@" + self.DATABASE_URL.split("@")[-1]
        return self.DATABASE_URL
