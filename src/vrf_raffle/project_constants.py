"""
Protocol-wide immutable parameters for the VRF raffle.

These values define how a draw is requested from the oracle.
Changing them changes the public rules and MUST be announced.
"""

# Blocks the oracle waits before answering a request
REQUEST_CONFIRMATIONS = 3

# Exactly one random word is needed to pick a winner
NUM_WORDS = 1

# Pay oracle fees in LINK, not native currency
NATIVE_PAYMENT = False

# Native currency uses 18 decimals
ETHER_DECIMALS = 18
WEI_PER_ETHER = 10**ETHER_DECIMALS

# Public drand mainnet beacon
DEFAULT_BEACON_URL = "https://api.drand.sh/public"

# Built-in deployment parameters per network
NETWORKS = {
    "sepolia": {
        "entrance_fee": WEI_PER_ETHER // 100,  # 0.01 ether
        "interval": 30,
        "vrf_coordinator": "0x9DdfaCa8183c41ad55329BdeeD9F6A8d53168B1B",
        "key_hash": "0x787d74caea10b2b357790d5b5247c2f63d1d91572a9846f780606e4d953677ae",
        "subscription_id": 0,
        "callback_gas_limit": 500_000,
    },
    "local": {
        "entrance_fee": WEI_PER_ETHER // 100,
        "interval": 30,
        # Filled in with the mock coordinator's address at deploy time
        "vrf_coordinator": "",
        "key_hash": "0x474e34a077df58807dbe9c96d3c009b23b3c6d0cce433e59bbf5b34f823bc56c",
        "subscription_id": 0,
        "callback_gas_limit": 500_000,
    },
}
