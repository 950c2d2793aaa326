"""Fee quote and deposit limit models."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from fee_gateway.config import DEFAULT_ORIGIN_CHAIN_ID

ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"
INTEGER_PATTERN = r"^\d+$"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SuggestedFeesQuery(_CamelModel):
    """Query parameters for a suggested fee quote."""

    amount: str = Field(
        pattern=INTEGER_PATTERN,
        description="Amount to bridge in token decimals",
        examples=["1000000"],
    )
    input_token: str = Field(
        pattern=ADDRESS_PATTERN,
        description="Input token address",
        examples=["0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"],
    )
    output_token: str = Field(
        pattern=ADDRESS_PATTERN,
        description="Output token address",
        examples=["0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"],
    )
    destination_chain_id: str = Field(
        pattern=INTEGER_PATTERN,
        description="Destination chain ID",
        examples=["10", "137", "42161"],
    )
    origin_chain_id: str = Field(
        default=DEFAULT_ORIGIN_CHAIN_ID,
        pattern=INTEGER_PATTERN,
        description="Origin chain ID (defaults to mainnet)",
    )
    depositor: str | None = Field(
        default=None,
        pattern=ADDRESS_PATTERN,
        description="Depositor address for exclusivity routing",
    )
    recipient: str | None = Field(
        default=None, pattern=ADDRESS_PATTERN, description="Recipient address"
    )
    message: str | None = Field(default=None, description="Optional message data")
    skip_amount_limit: bool = Field(
        default=False, description="Skip amount limit validation"
    )

    def cache_key(self) -> str:
        """Return the cache key for this quote."""
        return (
            f"fees:{self.origin_chain_id}:{self.destination_chain_id}:"
            f"{self.input_token}:{self.output_token}:{self.amount}"
        )


class TotalRelayFee(_CamelModel):
    """Combined relay fee."""

    pct: str
    total: str


class SuggestedFeesResponse(_CamelModel):
    """Suggested fee quote for a bridge transfer."""

    estimated_fill_time_sec: int
    relay_fee_pct: str
    relay_fee_total: str
    lp_fee_pct: str
    timestamp: str
    is_amount_too_low: bool
    quote_block: str
    exclusive_relayer: str | None = None
    exclusivity_deadline: str | None = None
    total_relay_fee: TotalRelayFee
    capital_fee_pct: str
    capital_fee_total: str
    relay_gas_fee_pct: str
    relay_gas_fee_total: str


class LimitsQuery(_CamelModel):
    """Query parameters for deposit limits."""

    token: str = Field(pattern=ADDRESS_PATTERN, description="Token address")
    destination_chain_id: str = Field(
        pattern=INTEGER_PATTERN, description="Destination chain ID"
    )
    origin_chain_id: str = Field(
        default=DEFAULT_ORIGIN_CHAIN_ID,
        pattern=INTEGER_PATTERN,
        description="Origin chain ID",
    )

    def cache_key(self) -> str:
        """Return the cache key for this route."""
        return f"limits:{self.origin_chain_id}:{self.destination_chain_id}:{self.token}"


class LimitsResponse(_CamelModel):
    """Deposit limits for a route, as integer strings in token decimals."""

    min_deposit: str
    max_deposit: str
    max_deposit_instant: str
    max_deposit_short_delay: str
    recommended_deposit_instant: str
