"""
Configuration management for the NFD vault batch sender.

Loads settings from the environment or .env via pydantic-settings.

Notes:
    - The signing key is derived from the mnemonic once and cached for the
      process lifetime; it is handed to the signer explicitly, never read
      from module state inside the pipeline.
    - validate_runtime_settings() runs before the input file is processed,
      so a missing credential aborts the batch before any network call.
"""
import logging
from functools import cached_property

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from domain.constants import DEFAULT_ASSET_ID, NFD_API_BASE_URL
from exceptions import ConfigurationError
from models import RetryPolicy

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Wallet ──────────────────────────────────────────────────────
    algo_wallet_mnemonic: str = ""
    # Empty means "derive from the wallet"
    sender_address: str = ""

    # ── Algorand node ───────────────────────────────────────────────
    algo_algod_url: str = ""
    algo_algod_token: str = ""

    # ── NFD API ─────────────────────────────────────────────────────
    nfd_api_base_url: str = NFD_API_BASE_URL
    asset_id: int = DEFAULT_ASSET_ID
    resolver_min_interval_seconds: float = 0.2   # ~300 calls/minute
    resolver_timeout_seconds: float = 30.0

    # ── Submission ──────────────────────────────────────────────────
    confirmation_rounds: int = 4
    submit_concurrency: int = 4
    max_retries: int = Field(default=0, ge=0)
    retry_backoff_seconds: float = Field(default=1.0, ge=0)

    # ── Files ───────────────────────────────────────────────────────
    input_file: str = "nfd_list.csv"
    report_file: str = "nfd_list-failed.csv"

    # ── Application ─────────────────────────────────────────────────
    dry_run: bool = False  # resolve + sign only, nothing is submitted

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @cached_property
    def signing_private_key(self) -> str:
        """
        Derive the wallet private key from the mnemonic (computed once, cached).

        The key is held in memory for the process lifetime.
        """
        if not self.algo_wallet_mnemonic:
            raise ConfigurationError("ALGO_WALLET_MNEMONIC not set")
        from algosdk import mnemonic
        try:
            return mnemonic.to_private_key(self.algo_wallet_mnemonic)
        except Exception as e:
            raise ConfigurationError(f"ALGO_WALLET_MNEMONIC is not a valid mnemonic: {e}")

    @property
    def wallet_address(self) -> str:
        from algosdk import account
        return account.address_from_private_key(self.signing_private_key)

    @property
    def effective_sender_address(self) -> str:
        """The configured sender, or the wallet's own address when unset."""
        return self.sender_address or self.wallet_address

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            backoff_seconds=self.retry_backoff_seconds,
        )

    def validate_runtime_settings(self):
        """
        Validate settings before a batch starts.

        Raises ConfigurationError on anything that would make the batch fail
        for every payment.
        """
        from utils.validators import validate_algorand_address

        if not self.algo_algod_url:
            raise ConfigurationError("ALGO_ALGOD_URL not set")

        # Derives the key; raises if the mnemonic is missing or malformed
        wallet = self.wallet_address

        if self.sender_address:
            try:
                validate_algorand_address(self.sender_address)
            except ValueError as e:
                raise ConfigurationError(f"SENDER_ADDRESS: {e}")
            if self.sender_address != wallet:
                logger.warning(
                    f"⚠️  SENDER_ADDRESS {self.sender_address[:8]}... differs from the "
                    f"wallet address {wallet[:8]}...; the node will reject groups "
                    f"the wallet cannot authorise"
                )

        if self.resolver_min_interval_seconds < 0:
            raise ConfigurationError("resolver_min_interval_seconds must be >= 0")
        if self.resolver_timeout_seconds <= 0:
            raise ConfigurationError("resolver_timeout_seconds must be > 0")
        if self.confirmation_rounds < 1:
            raise ConfigurationError("confirmation_rounds must be >= 1")
        if self.submit_concurrency < 1:
            raise ConfigurationError("submit_concurrency must be >= 1")

        logger.info(
            f"Settings validated: sender={self.effective_sender_address[:8]}... "
            f"asset={self.asset_id} concurrency={self.submit_concurrency} "
            f"retries={self.max_retries}"
        )


# Global settings instance
settings = Settings()
