from __future__ import annotations

import os
from dataclasses import dataclass, replace
from dotenv import load_dotenv

from .project_constants import DEFAULT_BEACON_URL, NETWORKS


@dataclass(frozen=True)
class NetworkConfig:
    """The six parameters a raffle is deployed with. Immutable afterwards."""

    entrance_fee: int
    interval: int
    vrf_coordinator: str
    key_hash: str
    subscription_id: int
    callback_gas_limit: int


@dataclass(frozen=True)
class Settings:
    network: str
    raffle: NetworkConfig
    beacon_url: str

    @staticmethod
    def from_env(network_override: str | None = None) -> "Settings":
        load_dotenv()

        # If user provides --network, trust it.
        network = (network_override or os.getenv("RAFFLE_NETWORK", "")).strip()
        network = network or "local"
        if network not in NETWORKS:
            raise RuntimeError(
                f"Unknown network {network!r}. Expected one of: {', '.join(sorted(NETWORKS))}."
            )

        raffle = NetworkConfig(**NETWORKS[network])

        # Env values override the built-in network defaults.
        overrides = {}
        for field, env_name in (
            ("entrance_fee", "ENTRANCE_FEE_WEI"),
            ("interval", "RAFFLE_INTERVAL"),
            ("subscription_id", "SUBSCRIPTION_ID"),
            ("callback_gas_limit", "CALLBACK_GAS_LIMIT"),
        ):
            value = _env_int(env_name)
            if value is not None:
                overrides[field] = value
        for field, env_name in (
            ("vrf_coordinator", "VRF_COORDINATOR"),
            ("key_hash", "KEY_HASH"),
        ):
            value = os.getenv(env_name, "").strip()
            if value:
                overrides[field] = value
        if overrides:
            raffle = replace(raffle, **overrides)

        beacon_url = os.getenv("BEACON_URL", "").strip() or DEFAULT_BEACON_URL
        return Settings(network=network, raffle=raffle, beacon_url=beacon_url)


def _env_int(name: str) -> int | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        value = int(raw, 0)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}.")
    if value < 0:
        raise RuntimeError(f"{name} must not be negative, got {value}.")
    return value
