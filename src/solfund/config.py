"""Runtime configuration loaded from environment variables and `.env`."""

from abc import ABC, abstractmethod
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.accounts import LAMPORTS_PER_SOL
from .core.keypairs import Keypair, parse_secret_json
from .exceptions import InvalidKeyMaterial


class Settings(BaseSettings):
    """Settings for talking to a Solana cluster."""

    rpc_url: str = Field(
        "https://api.devnet.solana.com",
        alias="SOLANA_RPC_URL",
        description="JSON-RPC endpoint of the cluster",
    )
    # JSON array of the 64 secret key bytes, as written by solana-keygen
    secret_key: Optional[str] = Field(None, alias="SECRET_KEY")
    commitment: Literal["processed", "confirmed", "finalized"] = Field(
        "confirmed",
        alias="SOLANA_COMMITMENT",
        description="Commitment level treated as final",
    )

    request_timeout: float = Field(
        10.0,
        alias="SOLANA_REQUEST_TIMEOUT",
        ge=1.0,
        description="Per-request HTTP timeout in seconds",
    )
    confirm_timeout: float = Field(
        60.0,
        alias="SOLANA_CONFIRM_TIMEOUT",
        gt=0,
        description="Upper bound on any confirmation wait in seconds",
    )
    poll_interval: float = Field(
        0.5,
        alias="SOLANA_POLL_INTERVAL",
        ge=0,
        description="Delay between signature status polls in seconds",
    )

    funding_threshold: int = Field(
        1,
        alias="FUNDING_THRESHOLD_LAMPORTS",
        ge=0,
        description="Request an airdrop when the balance is below this",
    )
    funding_amount: int = Field(
        LAMPORTS_PER_SOL,
        alias="FUNDING_AMOUNT_LAMPORTS",
        gt=0,
        description="Lamports requested per airdrop",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )


class SecretProvider(ABC):
    """Source of the serialized secret key handed to Keypair.from_bytes."""

    @abstractmethod
    def load_secret(self) -> bytes:
        pass


class EnvSecretProvider(SecretProvider):
    """Reads SECRET_KEY (a JSON byte array) from the given settings."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def load_secret(self) -> bytes:
        raw = self.settings.secret_key
        if not raw:
            raise InvalidKeyMaterial("SECRET_KEY is not set")
        return parse_secret_json(raw)


def load_identity(provider: SecretProvider) -> Keypair:
    """Build the signing keypair from whatever the provider yields."""
    return Keypair.from_bytes(provider.load_secret())
