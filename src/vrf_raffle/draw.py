from __future__ import annotations

import enum
import hashlib
from typing import List

from .project_constants import ETHER_DECIMALS


class RaffleState(enum.IntEnum):
    OPEN = 0
    CALCULATING = 1


def to_ether(wei: int) -> float:
    return round(wei / (10**ETHER_DECIMALS), 4)


def is_upkeep_needed(
    now: int,
    last_timestamp: int,
    interval: int,
    state: RaffleState,
    balance: int,
    num_players: int,
) -> bool:
    time_has_passed = now - last_timestamp >= interval
    is_open = state == RaffleState.OPEN
    has_balance = balance > 0
    has_players = num_players > 0
    return time_has_passed and is_open and has_balance and has_players


def winner_index(random_word: int, num_players: int) -> int:
    # Plain modulo. The bias is negligible while num_players << 2**256.
    if num_players <= 0:
        raise ValueError("Cannot pick a winner without players.")
    return random_word % num_players


def derive_random_words(seed: str, request_id: int, num_words: int) -> List[int]:
    """Expand one seed into `num_words` uint256 words, one per index."""
    words: List[int] = []
    for i in range(num_words):
        digest = hashlib.sha256(f"{seed}:{request_id}:{i}".encode("utf-8")).hexdigest()
        words.append(int(digest, 16))
    return words
