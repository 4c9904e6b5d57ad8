from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .chain import Chain
from .config import NetworkConfig
from .coordinator import Coordinator, RandomWordsRequest
from .draw import RaffleState, is_upkeep_needed, to_ether, winner_index
from .exceptions import (
    OnlyCoordinatorCanFulfill,
    RaffleEntranceFeeNotMet,
    RaffleNotOpen,
    RaffleTransferFailed,
    RaffleUpkeepNotNeeded,
    TransferRejected,
    UnknownRequest,
)
from .project_constants import NATIVE_PAYMENT, NUM_WORDS, REQUEST_CONFIRMATIONS

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RaffleEntered:
    player: str


@dataclass(frozen=True)
class RequestedRaffleWinner:
    request_id: int


@dataclass(frozen=True)
class WinnerPicked:
    winner: str


RaffleEvent = Union[RaffleEntered, RequestedRaffleWinner, WinnerPicked]


class Raffle:
    """
    Fixed-fee raffle whose winner is picked with oracle randomness.

    Lifecycle: OPEN (entries accepted) -> perform_upkeep -> CALCULATING
    (one request outstanding) -> oracle callback -> OPEN.

    Every public operation runs under one lock and either applies all of
    its effects or raises and applies none.
    """

    def __init__(
        self,
        config: NetworkConfig,
        chain: Chain,
        coordinator: Coordinator,
        address: Optional[str] = None,
    ) -> None:
        if coordinator.address != config.vrf_coordinator:
            raise ValueError(
                f"Coordinator {coordinator.address} does not match "
                f"configured {config.vrf_coordinator}"
            )
        self._config = config
        self._chain = chain
        self._coordinator = coordinator
        self.address = address or chain.new_address()

        self._players: List[str] = []
        self._state = RaffleState.OPEN
        self._last_timestamp = chain.timestamp
        self._recent_winner: Optional[str] = None
        self._pending_request_id: Optional[int] = None

        self._events: List[RaffleEvent] = []
        self._listeners: List[Callable[[RaffleEvent], None]] = []
        self._lock = threading.RLock()

    # --- Operations ---

    def enter(self, player: str, value: int) -> None:
        with self._lock:
            if value < self._config.entrance_fee:
                raise RaffleEntranceFeeNotMet(value, self._config.entrance_fee)
            if self._state != RaffleState.OPEN:
                raise RaffleNotOpen(self._state)

            # Raises without side effects if the player cannot pay.
            self._chain.transfer(player, self.address, value)
            self._players.append(player)
            self._emit(RaffleEntered(player))

    def check_upkeep(self, check_data: bytes = b"") -> Tuple[bool, bytes]:
        """Automation-facing check. Returns (upkeep_needed, perform_data)."""
        return self.check_eligibility(), b""

    def check_eligibility(self) -> bool:
        with self._lock:
            return is_upkeep_needed(
                now=self._chain.timestamp,
                last_timestamp=self._last_timestamp,
                interval=self._config.interval,
                state=self._state,
                balance=self.balance,
                num_players=len(self._players),
            )

    def perform_upkeep(self, perform_data: bytes = b"") -> int:
        """Request the draw. Returns the oracle's request id."""
        with self._lock:
            if not self.check_eligibility():
                raise RaffleUpkeepNotNeeded(
                    self.balance, len(self._players), self._state
                )

            request = RandomWordsRequest(
                key_hash=self._config.key_hash,
                sub_id=self._config.subscription_id,
                request_confirmations=REQUEST_CONFIRMATIONS,
                callback_gas_limit=self._config.callback_gas_limit,
                num_words=NUM_WORDS,
                native_payment=NATIVE_PAYMENT,
            )
            request_id = self._coordinator.request_random_words(request, consumer=self)

            self._state = RaffleState.CALCULATING
            self._pending_request_id = request_id
            self._emit(RequestedRaffleWinner(request_id))
            return request_id

    def raw_fulfill_random_words(
        self, sender: str, request_id: int, random_words: Sequence[int]
    ) -> None:
        """Oracle callback entry point; only the coordinator may call it."""
        if sender != self._config.vrf_coordinator:
            raise OnlyCoordinatorCanFulfill(sender, self._config.vrf_coordinator)
        self.fulfill_random_words(request_id, random_words)

    def fulfill_random_words(self, request_id: int, random_words: Sequence[int]) -> None:
        with self._lock:
            if (
                self._state != RaffleState.CALCULATING
                or request_id != self._pending_request_id
            ):
                raise UnknownRequest(request_id, self._pending_request_id)
            if not random_words:
                raise ValueError("Expected at least one random word.")

            # Stage everything, pay out, then commit.
            winner = self._players[winner_index(random_words[0], len(self._players))]
            prize = self.balance
            now = self._chain.timestamp

            try:
                self._chain.transfer(self.address, winner, prize)
            except TransferRejected as e:
                log.error(
                    "Payout of %s ETH to %s failed for request %d; draw is lost.",
                    to_ether(prize),
                    winner,
                    request_id,
                )
                raise RaffleTransferFailed(winner, prize) from e

            self._recent_winner = winner
            self._players = []
            self._state = RaffleState.OPEN
            self._last_timestamp = now
            self._pending_request_id = None
            self._emit(WinnerPicked(winner))

    # --- Notifications ---

    def subscribe(self, listener: Callable[[RaffleEvent], None]) -> None:
        self._listeners.append(listener)

    def _emit(self, event: RaffleEvent) -> None:
        self._events.append(event)
        log.info("%s", event)
        # Broadcast only: a failing listener cannot undo a committed operation.
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                log.exception("Listener %r failed on %s", listener, event)

    # --- Queries ---

    @property
    def events(self) -> List[RaffleEvent]:
        return list(self._events)

    @property
    def entrance_fee(self) -> int:
        return self._config.entrance_fee

    @property
    def interval(self) -> int:
        return self._config.interval

    @property
    def raffle_state(self) -> RaffleState:
        return self._state

    def get_player(self, index: int) -> str:
        if index < 0 or index >= len(self._players):
            raise IndexError(f"No player at index {index}")
        return self._players[index]

    @property
    def number_of_players(self) -> int:
        return len(self._players)

    @property
    def last_timestamp(self) -> int:
        return self._last_timestamp

    @property
    def recent_winner(self) -> Optional[str]:
        return self._recent_winner

    @property
    def pending_request_id(self) -> Optional[int]:
        return self._pending_request_id

    @property
    def balance(self) -> int:
        return self._chain.balance_of(self.address)
