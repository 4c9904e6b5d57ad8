from __future__ import annotations

import argparse
import json
import logging
import time
from dataclasses import asdict, replace
from datetime import datetime, timezone
from typing import Any, Dict

from .beacon import BeaconClient, BeaconRound
from .chain import Chain
from .config import Settings
from .coordinator import BeaconCoordinator, MockCoordinator
from .draw import derive_random_words, to_ether, winner_index
from .project_constants import NUM_WORDS
from .raffle import Raffle
from .verify import verify_audit


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def cmd_show_config(args: argparse.Namespace) -> int:
    settings = Settings.from_env(network_override=args.network)
    print(f"Network           : {settings.network}")
    for key, value in asdict(settings.raffle).items():
        print(f"{key:<18}: {value}")
    print(f"{'beacon_url':<18}: {settings.beacon_url}")
    return 0


def cmd_simulate(args: argparse.Namespace) -> int:
    settings = Settings.from_env(network_override=args.network)
    log = logging.getLogger("simulate")

    if args.players < 1:
        raise SystemExit("Need at least one player to run a draw.")

    chain = Chain()
    config = settings.raffle
    if not config.vrf_coordinator:
        config = replace(config, vrf_coordinator=chain.new_address())

    client = None
    if args.beacon:
        client = BeaconClient(settings.beacon_url, timeout_s=args.timeout)
        coordinator = BeaconCoordinator(config.vrf_coordinator, client)
    else:
        coordinator = MockCoordinator(config.vrf_coordinator, seed=args.seed)

    try:
        raffle = Raffle(config, chain, coordinator)
        log.info("Raffle deployed at %s", raffle.address)

        players = []
        for _ in range(args.players):
            player = chain.new_address()
            chain.fund(player, config.entrance_fee)
            raffle.enter(player, config.entrance_fee)
            players.append({"address": player, "value": config.entrance_fee})
        log.info("Players entered   : %d", raffle.number_of_players)
        log.info("Pot               : %s ETH", to_ether(raffle.balance))

        chain.time_travel(config.interval + 1)
        upkeep_needed, _ = raffle.check_upkeep()
        log.info("Upkeep needed     : %s", upkeep_needed)

        request_id = raffle.perform_upkeep()
        log.info("Request id        : %d", request_id)

        beacon_round = None
        requested_round = None
        if isinstance(coordinator, BeaconCoordinator):
            requested_round = coordinator.min_round(request_id)
            log.info("Waiting for beacon round %d", requested_round)
            beacon_round = wait_for_beacon(coordinator, request_id, args.wait)
            seed = beacon_round.randomness
        else:
            seed = args.seed
            coordinator.fulfill_random_words(request_id)
    finally:
        if client is not None:
            client.close()

    random_word = derive_random_words(seed, request_id, NUM_WORDS)[0]
    winner = raffle.recent_winner
    payout = sum(p["value"] for p in players)

    audit: Dict[str, Any] = {
        "metadata": {
            "tool": "vrf-raffle",
            "version": "1.0.0",
            "generated_at_utc": datetime.now(timezone.utc).isoformat(),
            "network": settings.network,
            "entrance_fee": config.entrance_fee,
            "interval": config.interval,
            "key_hash": config.key_hash,
            "subscription_id": config.subscription_id,
            "request_id": request_id,
            "randomness_source": "drand" if beacon_round else "mock",
            "requested_round": requested_round,
            "beacon_round": beacon_round.round if beacon_round else None,
            "seed": seed,
            "random_word": str(random_word),  # uint256; store as string
        },
        "winner": {
            "address": winner,
            "index": winner_index(random_word, len(players)),
            "payout": payout,
        },
        "players": players,
    }

    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(audit, f, indent=2)

    print("========================================")
    print("🎲 VRF RAFFLE DRAW")
    print("========================================")
    print(f"Network       : {settings.network}")
    print(f"Players       : {len(players)}")
    print(f"Request id    : {request_id}")
    print(f"Random word   : {random_word}")
    print("----------------------------------------")
    print("🏆 WINNER")
    print(f"Address       : {winner}")
    print(f"Payout        : {to_ether(payout)} ETH")
    print("----------------------------------------")
    print(f"🧾 Wrote audit: {args.out}")
    return 0


def wait_for_beacon(
    coordinator: BeaconCoordinator, request_id: int, wait_s: float, poll_s: float = 1.0
) -> BeaconRound:
    deadline = time.monotonic() + wait_s
    while True:
        used = coordinator.fulfill_pending()
        if request_id in used:
            return used[request_id]
        if time.monotonic() >= deadline:
            raise SystemExit(
                f"Beacon round {coordinator.min_round(request_id)} not published "
                f"within {wait_s:.0f}s; request {request_id} is still pending."
            )
        time.sleep(poll_s)


def cmd_verify(args: argparse.Namespace) -> int:
    result = verify_audit(args.audit)
    print("✅ AUDIT VERIFIED")
    print(f"Winner        : {result['winner']}")
    print(f"Winner index  : {result['winner_index']} of {result['num_players']}")
    print(f"Payout        : {to_ether(result['payout'])} ETH")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="vrf-raffle",
        description="Fixed-fee raffle drawn with oracle randomness.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument(
        "--network", default=None, help="Network config to use (else RAFFLE_NETWORK)."
    )
    p.add_argument("--timeout", type=float, default=30.0, help="Beacon timeout seconds.")

    sub = p.add_subparsers(dest="cmd", required=True)

    c = sub.add_parser("show-config", help="Print the resolved deployment config.")
    c.set_defaults(func=cmd_show_config)

    s = sub.add_parser("simulate", help="Run one draw on a local chain.")
    s.add_argument("--players", type=int, default=4, help="Number of entrants.")
    s.add_argument(
        "--seed", default="mock", help="Seed for the mock coordinator's random word."
    )
    s.add_argument(
        "--beacon",
        action="store_true",
        help="Fulfill with randomness from the public drand beacon.",
    )
    s.add_argument(
        "--wait",
        type=float,
        default=90.0,
        help="Seconds to wait for the beacon round a request is pinned to.",
    )
    s.add_argument("--out", default="audit.json", help="Audit output JSON path.")
    s.set_defaults(func=cmd_simulate)

    v = sub.add_parser("verify", help="Verify an existing audit.json deterministically.")
    v.add_argument("--audit", required=True, help="Path to audit.json.")
    v.set_defaults(func=cmd_verify)

    return p


def main(argv=None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    raise SystemExit(args.func(args))
