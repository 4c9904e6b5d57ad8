from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
import httpx


@dataclass(frozen=True)
class BeaconRound:
    round: int
    randomness: str
    signature: str


class BeaconClient:
    """Reads rounds from a drand HTTP endpoint (e.g. https://api.drand.sh/public)."""

    def __init__(
        self,
        beacon_url: str,
        timeout_s: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.beacon_url = beacon_url.rstrip("/")
        self.client = httpx.Client(timeout=timeout_s, transport=transport)

    def close(self) -> None:
        self.client.close()

    def latest(self) -> BeaconRound:
        """Returns the most recent published round."""
        return self._parse(self._get("latest"))

    def get_round(self, round_number: int) -> BeaconRound:
        data = self._get(str(int(round_number)))
        beacon_round = self._parse(data)
        if beacon_round.round != int(round_number):
            raise RuntimeError(
                f"Beacon round mismatch: asked {round_number}, got {beacon_round.round}"
            )
        return beacon_round

    def _get(self, path: str) -> Dict[str, Any]:
        resp = self.client.get(f"{self.beacon_url}/{path}")
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise RuntimeError(f"Beacon returned unexpected payload: {data!r}")
        return data

    @staticmethod
    def _parse(data: Dict[str, Any]) -> BeaconRound:
        try:
            round_number = int(data["round"])
            randomness = str(data["randomness"])
            int(randomness, 16)
        except (KeyError, TypeError, ValueError) as e:
            raise RuntimeError(f"Beacon payload is missing round/randomness: {e}")
        return BeaconRound(
            round=round_number,
            randomness=randomness,
            signature=str(data.get("signature", "")),
        )
