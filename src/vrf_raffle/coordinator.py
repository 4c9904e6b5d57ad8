from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

from .beacon import BeaconClient, BeaconRound
from .draw import derive_random_words
from .exceptions import InvalidRequest

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RandomWordsRequest:
    key_hash: str
    sub_id: int
    request_confirmations: int
    callback_gas_limit: int
    num_words: int
    native_payment: bool = False


@dataclass(frozen=True)
class PendingRequest:
    request_id: int
    request: RandomWordsRequest
    consumer: Any
    # First beacon round allowed to answer; None for coordinators without one.
    min_round: Optional[int] = None


class Coordinator(Protocol):
    """What a raffle needs from its oracle."""

    address: str

    def request_random_words(self, request: RandomWordsRequest, consumer: Any) -> int:
        ...


class _Coordinator:
    """
    Request bookkeeping shared by the coordinators.

    Ids are assigned from 1. A request is consumed the moment it is
    fulfilled, even when the consumer's callback raises.
    """

    def __init__(self, address: str) -> None:
        self.address = address
        self._next_request_id = 1
        self._pending: Dict[int, PendingRequest] = {}
        self._lock = threading.Lock()
        self.last_request_id: Optional[int] = None

    def request_random_words(self, request: RandomWordsRequest, consumer: Any) -> int:
        if request.num_words < 1:
            raise ValueError("num_words must be at least 1")
        min_round = self._min_round_for_new_request()
        with self._lock:
            request_id = self._next_request_id
            self._next_request_id += 1
            self._pending[request_id] = PendingRequest(
                request_id, request, consumer, min_round
            )
            self.last_request_id = request_id
        log.debug("Randomness requested: id=%d %s", request_id, request)
        return request_id

    def _min_round_for_new_request(self) -> Optional[int]:
        return None

    @property
    def pending_requests(self) -> List[int]:
        return sorted(self._pending)

    def min_round(self, request_id: int) -> Optional[int]:
        pending = self._pending.get(request_id)
        if pending is None:
            raise InvalidRequest(request_id)
        return pending.min_round

    def _deliver(self, request_id: int, words: Optional[Sequence[int]], seed: str) -> None:
        with self._lock:
            pending = self._pending.pop(request_id, None)
        if pending is None:
            raise InvalidRequest(request_id)
        if words is None:
            words = derive_random_words(seed, request_id, pending.request.num_words)
        log.debug("Fulfilling request %d with %d word(s)", request_id, len(words))
        pending.consumer.raw_fulfill_random_words(self.address, request_id, list(words))


class MockCoordinator(_Coordinator):
    """Local coordinator; the test or operator decides when and what to answer."""

    def __init__(self, address: str, seed: str = "mock") -> None:
        super().__init__(address)
        self.seed = seed

    def fulfill_random_words(
        self, request_id: int, words: Optional[Sequence[int]] = None
    ) -> None:
        self._deliver(request_id, words, seed=self.seed)


class BeaconCoordinator(_Coordinator):
    """
    Answers pending requests with randomness from a public drand beacon.

    A request is pinned to the first round published after it was made,
    so its randomness is unknown to anyone when the draw is requested.
    """

    def __init__(self, address: str, client: BeaconClient) -> None:
        super().__init__(address)
        self.client = client

    def _min_round_for_new_request(self) -> Optional[int]:
        return self.client.latest().round + 1

    def fulfill_pending(self) -> Dict[int, BeaconRound]:
        """
        Fulfills every pending request whose round has been published.
        Returns the round used per fulfilled request id; requests whose
        round is still in the future stay pending.
        """
        if not self._pending:
            return {}
        latest_round = self.client.latest().round
        used: Dict[int, BeaconRound] = {}
        for request_id in self.pending_requests:
            min_round = self._pending[request_id].min_round
            if min_round > latest_round:
                continue
            beacon_round = self.client.get_round(min_round)
            log.info("Beacon round %d: %s", beacon_round.round, beacon_round.randomness)
            used[request_id] = beacon_round
            self._deliver(request_id, None, seed=beacon_round.randomness)
        return used
