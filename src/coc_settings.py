from coc_client import COC_BASE_API_URL, DEFAULT_TIMEOUT

from dataclasses import dataclass
import os

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    api_token: str = ""
    clan_tag: str = ""
    base_url: str = COC_BASE_API_URL
    timeout: float = DEFAULT_TIMEOUT
    spreadsheet_id: str = ""
    log_level: str = "WARNING"
    log_file: str = ""


def load_settings(env_file: str | None = None) -> Settings:
    """
    Load the settings from the environment, after reading the .env file into it.

    Args:
        env_file (str): Path of the .env file, defaults to searching from the working directory.

    Returns:
        Settings: The loaded settings.
    """

    load_dotenv(env_file, override=True)

    timeout = os.getenv("COC_API_TIMEOUT", "")
    try:
        timeout = float(timeout) if timeout else DEFAULT_TIMEOUT
    except ValueError:
        raise ValueError(f"COC_API_TIMEOUT must be a number of seconds, got {timeout!r}") from None

    return Settings(api_token=os.getenv("COC_API_TOKEN", ""),
                    clan_tag=os.getenv("COC_CLAN_TAG", ""),
                    base_url=os.getenv("COC_BASE_API_URL", COC_BASE_API_URL),
                    timeout=timeout,
                    spreadsheet_id=os.getenv("GOOGLE_SHEETS_SPREADSHEET_ID", ""),
                    log_level=os.getenv("COC_LOG_LEVEL", "WARNING"),
                    log_file=os.getenv("COC_LOG_FILE", ""))
