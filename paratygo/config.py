from __future__ import annotations

from pydantic_settings import BaseSettings

DEFAULT_PORT = 3001


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # Firebase service account (Firestore)
    firebase_project_id: str = ""
    firebase_private_key: str = ""  # may contain literal "\n" sequences
    firebase_client_email: str = ""

    # Resend
    resend_api_key: str = ""
    email_to: str = ""
    email_from: str = ""

    # API: PORT stays a string so an unset value is distinguishable
    port: str = ""
    api_host: str = "0.0.0.0"

    # Health scripts target; defaults to http://localhost:<port>
    health_base_url: str = ""

    # Logging
    log_level: str = "INFO"

    @property
    def server_port(self) -> int:
        """PORT as an int; DEFAULT_PORT when unset or not a number."""
        value = self.port.strip()
        return int(value) if value.isdigit() else DEFAULT_PORT

    @property
    def base_url(self) -> str:
        return (self.health_base_url or f"http://localhost:{self.server_port}").rstrip("/")

    @property
    def private_key_pem(self) -> str:
        """Private key with escaped newlines restored."""
        return self.firebase_private_key.replace("\\n", "\n")

    def env_values(self) -> dict[str, str]:
        """Configuration as the upper-case variable names probes check."""
        return {
            "FIREBASE_PROJECT_ID": self.firebase_project_id,
            "FIREBASE_PRIVATE_KEY": self.firebase_private_key,
            "FIREBASE_CLIENT_EMAIL": self.firebase_client_email,
            "RESEND_API_KEY": self.resend_api_key,
            "EMAIL_TO": self.email_to,
            "EMAIL_FROM": self.email_from,
            "PORT": self.port,
        }


settings = Settings()
