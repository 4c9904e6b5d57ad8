from __future__ import annotations

import secrets
import threading
import time
from collections import defaultdict
from typing import Dict, Optional, Set

from .exceptions import InsufficientBalance, TransferRejected


class Chain:
    """
    In-process execution environment: account balances, a clock and
    value transfers.

    A transfer either moves the whole amount or raises and changes nothing.
    Addresses marked with `reject_payments` behave like contracts without a
    receive hook and refuse incoming value.
    """

    def __init__(self, timestamp: Optional[int] = None) -> None:
        self._balances: Dict[str, int] = defaultdict(int)
        self._rejecting: Set[str] = set()
        self._timestamp = int(time.time()) if timestamp is None else int(timestamp)
        self._lock = threading.RLock()

    @property
    def timestamp(self) -> int:
        return self._timestamp

    def time_travel(self, seconds: int) -> None:
        if seconds < 0:
            raise ValueError("The clock only moves forward.")
        with self._lock:
            self._timestamp += int(seconds)

    def new_address(self) -> str:
        return "0x" + secrets.token_hex(20)

    def fund(self, address: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Cannot fund a negative amount.")
        with self._lock:
            self._balances[address] += amount

    def balance_of(self, address: str) -> int:
        return self._balances.get(address, 0)

    def reject_payments(self, address: str, rejecting: bool = True) -> None:
        with self._lock:
            if rejecting:
                self._rejecting.add(address)
            else:
                self._rejecting.discard(address)

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Cannot transfer a negative amount.")
        with self._lock:
            if recipient in self._rejecting:
                raise TransferRejected(recipient, amount)
            balance = self.balance_of(sender)
            if balance < amount:
                raise InsufficientBalance(sender, balance, amount)
            self._balances[sender] = balance - amount
            self._balances[recipient] += amount
