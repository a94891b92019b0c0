from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .gossip.engine import GossipStrategy


class GossipNodeSettings(BaseSettings):
    """Node process configuration, read from GOSSIPNODE_* variables or .env."""

    model_config = SettingsConfigDict(
        env_prefix="GOSSIPNODE_", env_file=".env", extra="ignore"
    )

    strategy: GossipStrategy = Field(
        GossipStrategy.FLOOD,
        description="How broadcast values are propagated to neighbors.",
    )
    log_level: str = Field(
        "INFO", description="Minimum level for log records written to stderr."
    )
    debug_scopes: tuple[str, ...] = Field(
        (),
        description="Module prefixes (e.g. 'gossip') logged at DEBUG regardless of level.",
    )
    colorize: bool = Field(False, description="Colorize stderr log output.")
