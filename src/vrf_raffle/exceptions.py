from __future__ import annotations

from typing import Any


class RaffleError(Exception):
    """Base class for failures raised by a raffle operation."""


class RaffleEntranceFeeNotMet(RaffleError):
    def __init__(self, value: int, entrance_fee: int) -> None:
        self.value = value
        self.entrance_fee = entrance_fee
        super().__init__(
            f"Entrance fee not met: sent {value} wei, need {entrance_fee} wei"
        )


class RaffleNotOpen(RaffleError):
    def __init__(self, state: Any) -> None:
        self.state = state
        super().__init__(f"Raffle not open (state={state.name})")


class RaffleUpkeepNotNeeded(RaffleError):
    """The draw gate is closed. Carries the values the gate looked at."""

    def __init__(self, balance: int, num_players: int, raffle_state: Any) -> None:
        self.balance = balance
        self.num_players = num_players
        self.raffle_state = raffle_state
        super().__init__(
            f"Upkeep not needed: balance={balance} players={num_players} "
            f"state={raffle_state.name}"
        )


class RaffleTransferFailed(RaffleError):
    """Paying the winner failed. The draw is rolled back and lost."""

    def __init__(self, winner: str, amount: int) -> None:
        self.winner = winner
        self.amount = amount
        super().__init__(f"Payout of {amount} wei to winner {winner} failed")


class OnlyCoordinatorCanFulfill(RaffleError):
    def __init__(self, have: str, want: str) -> None:
        self.have = have
        self.want = want
        super().__init__(f"Only coordinator {want} can fulfill, got {have}")


class UnknownRequest(RaffleError):
    def __init__(self, request_id: int, expected: int | None) -> None:
        self.request_id = request_id
        self.expected = expected
        super().__init__(
            f"Request {request_id} does not match outstanding request {expected}"
        )


class ChainError(Exception):
    pass


class InsufficientBalance(ChainError):
    def __init__(self, address: str, balance: int, amount: int) -> None:
        self.address = address
        self.balance = balance
        self.amount = amount
        super().__init__(f"{address} holds {balance} wei, cannot send {amount} wei")


class TransferRejected(ChainError):
    def __init__(self, recipient: str, amount: int) -> None:
        self.recipient = recipient
        self.amount = amount
        super().__init__(f"{recipient} rejected a transfer of {amount} wei")


class InvalidRequest(Exception):
    def __init__(self, request_id: int) -> None:
        self.request_id = request_id
        super().__init__(f"No pending randomness request with id {request_id}")
