from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv, find_dotenv

_env_path = find_dotenv(usecwd=True)  # locate a .env file in this folder or parent folders
if _env_path:
    load_dotenv(_env_path)


class Settings(BaseSettings):
    """Process-level startup parameters.

    Values come from the environment (prefixed `STATUSPROBE_`, `.env` honoured)
    and may be overridden by command-line flags. They are read once, before
    the probe loop starts, and never reloaded.
    """

    model_config = SettingsConfigDict(env_prefix='STATUSPROBE_', extra='ignore')

    # Files
    CONFIG_PATH: str = 'url.json'
    AUTH_PATH: str = 'auth.json'

    # Listener
    LISTEN_ADDR: str = ':9119'

    LOG_LEVEL: str = 'INFO'

    # Prober
    # 1 keeps sweeps serial and in target order
    PROBE_MAX_WORKERS: int = 1
    USER_AGENT: str = 'statusprobe/1.0'


settings = Settings()
