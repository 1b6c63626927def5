from pathlib import Path
import os

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Priority: environment variables > .env file
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    # Channels group every chat socket joins; all broadcasts go to this group.
    CHAT_GROUP_NAME: str = "chat.lobby"
    # Body of the liveness endpoint.
    HEALTH_MESSAGE: str = "Chat relay server running"

# Load .env before creating the Settings instance so pydantic-settings sees it
current_dir = Path(__file__).resolve().parent
env_paths = [
    current_dir.parent.parent.parent / ".env",  # repository root
    current_dir.parent.parent / ".env",         # server/.env
    Path(os.getcwd()) / ".env",
]

for env_path in env_paths:
    if env_path.exists():
        load_dotenv(env_path, override=False)
        break

config = Settings()
