from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """
    Global configuration for the GridSched master service.

    Values are loaded from environment variables prefixed with
    `GRIDSCHED_` or from an `.env` file.

    Attributes:
        host (str): Host address where the FastAPI server will bind.
        port (int): Port number for the FastAPI server.
        debug (bool): Enable/disable FastAPI debug mode.
        log_level (str): Logging level for the application.
        default_rack (str): Rack assigned to hosts missing from the topology.
        requeue_counter_policy (str): `additive` keeps locality counters
            untouched when a task is re-queued, `corrective` retracts the
            previous classification first.
        dispatch_enabled (bool): Push assignments to worker endpoints.
        dispatch_timeout (float): Timeout for the task hand-off request.
    """
    host: str = Field("0.0.0.0", description="Host for the FastAPI server")
    port: int = Field(8000, description="Port for the FastAPI server")
    debug: bool = Field(False, description="Enable debug mode for FastAPI")
    log_level: str = Field("info", description="Logging level")
    default_rack: str = Field("/default-rack", description="Rack for hosts unknown to the topology")
    requeue_counter_policy: str = Field("additive", description="Counter policy on re-queue: additive or corrective")
    dispatch_enabled: bool = Field(False, description="Send assigned tasks to worker endpoints")
    dispatch_timeout: float = Field(10.0, description="Timeout for task hand-off requests (seconds)")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "GRIDSCHED_"


@lru_cache()
def get_settings() -> Settings:
    """
    Retrieve a cached instance of the application settings.

    Returns:
        Settings: The global application configuration.
    """
    return Settings()
