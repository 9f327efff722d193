from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # --- APP ---
    APP_NAME: str = "Song_Stats_Console"

    # --- DATABASE ---
    DB_USER: str = "root"
    DB_PASSWORD: str = "admin"
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_NAME: str = "song_stats"
    DB_CHARSET: str = "utf8mb4"
    DB_URI: str = ""

    # --- LOGIN ---
    LOGIN_MAX_ATTEMPTS: int = 3  # 0 = unlimited
    BCRYPT_ROUNDS: int = 12

    # --- LOGGING ---
    LOG_FILE: str | None = None
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False

    def __init__(self, **kwargs):
        super().__init__(**kwargs)

        # Build DB_URI from the parts when .env does not set it
        if not self.DB_URI:
            self.DB_URI = (
                f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}"
                f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}?charset={self.DB_CHARSET}"
            )

    def __repr__(self):
        """Hides the database password when printed."""
        masked = self.DB_URI.replace(self.DB_PASSWORD, "****") if self.DB_PASSWORD else self.DB_URI
        return (
            f"<Settings APP_NAME={self.APP_NAME} "
            f"DB_URI={masked} "
            f"LOGIN_MAX_ATTEMPTS={self.LOGIN_MAX_ATTEMPTS}>"
        )


settings = Settings()
