from __future__ import annotations

import json
from typing import Any, Dict

from .draw import derive_random_words, winner_index


def verify_audit(audit_path: str) -> Dict[str, Any]:
    with open(audit_path, "r", encoding="utf-8") as f:
        audit = json.load(f)

    meta = audit["metadata"]
    request_id = int(meta["request_id"])
    random_word = int(meta["random_word"])
    seed = meta.get("seed")

    # The word must follow from the published seed, if there is one.
    if seed is not None:
        recomputed_word = derive_random_words(seed, request_id, 1)[0]
        if recomputed_word != random_word:
            raise RuntimeError(
                f"Random word mismatch: audit={random_word} recomputed={recomputed_word}"
            )

    # A beacon draw must use the round it was pinned to at request time.
    requested_round = meta.get("requested_round")
    beacon_round = meta.get("beacon_round")
    if requested_round is not None and beacon_round != requested_round:
        raise RuntimeError(
            f"Beacon round mismatch: requested={requested_round} used={beacon_round}"
        )

    players = audit["players"]
    index = winner_index(random_word, len(players))
    winner = players[index]["address"]
    winner_expected = audit["winner"]["address"]
    if winner != winner_expected:
        raise RuntimeError(f"Winner mismatch: audit={winner_expected} recomputed={winner}")

    pot = sum(int(p["value"]) for p in players)
    payout_expected = int(audit["winner"]["payout"])
    if pot != payout_expected:
        raise RuntimeError(f"Payout mismatch: audit={payout_expected} recomputed={pot}")

    return {
        "ok": True,
        "request_id": request_id,
        "random_word": random_word,
        "winner": winner,
        "winner_index": index,
        "payout": pot,
        "num_players": len(players),
    }
