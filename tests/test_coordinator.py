import hashlib

import httpx
import pytest

from vrf_raffle.beacon import BeaconClient
from vrf_raffle.coordinator import BeaconCoordinator, MockCoordinator, RandomWordsRequest
from vrf_raffle.draw import derive_random_words
from vrf_raffle.exceptions import InvalidRequest


REQUEST = RandomWordsRequest(
    key_hash="0x01",
    sub_id=1,
    request_confirmations=3,
    callback_gas_limit=500_000,
    num_words=2,
)


class RecordingConsumer:
    def __init__(self):
        self.calls = []

    def raw_fulfill_random_words(self, sender, request_id, random_words):
        self.calls.append((sender, request_id, random_words))


class FailingConsumer:
    def raw_fulfill_random_words(self, sender, request_id, random_words):
        raise RuntimeError("callback reverted")


def test_request_ids_start_at_one():
    coordinator = MockCoordinator("0xc0")
    consumer = RecordingConsumer()
    assert coordinator.request_random_words(REQUEST, consumer) == 1
    assert coordinator.request_random_words(REQUEST, consumer) == 2
    assert coordinator.pending_requests == [1, 2]
    assert coordinator.last_request_id == 2


def test_zero_words_rejected():
    coordinator = MockCoordinator("0xc0")
    bad = RandomWordsRequest("0x01", 1, 3, 100, num_words=0)
    with pytest.raises(ValueError):
        coordinator.request_random_words(bad, RecordingConsumer())


def test_fulfill_with_given_words():
    coordinator = MockCoordinator("0xc0")
    consumer = RecordingConsumer()
    request_id = coordinator.request_random_words(REQUEST, consumer)
    coordinator.fulfill_random_words(request_id, [11, 12])
    assert consumer.calls == [("0xc0", request_id, [11, 12])]
    assert coordinator.pending_requests == []


def test_fulfill_derives_words_from_seed():
    coordinator = MockCoordinator("0xc0", seed="abc")
    consumer = RecordingConsumer()
    request_id = coordinator.request_random_words(REQUEST, consumer)
    coordinator.fulfill_random_words(request_id)
    assert consumer.calls[0][2] == derive_random_words("abc", request_id, 2)


def test_fulfill_unknown_request():
    with pytest.raises(InvalidRequest) as exc_info:
        MockCoordinator("0xc0").fulfill_random_words(9)
    assert exc_info.value.request_id == 9


def test_failed_callback_still_consumes_request():
    coordinator = MockCoordinator("0xc0")
    request_id = coordinator.request_random_words(REQUEST, FailingConsumer())
    with pytest.raises(RuntimeError):
        coordinator.fulfill_random_words(request_id)
    assert coordinator.pending_requests == []


class FakeDrand:
    """Serves rounds up to `current`; later rounds are not published yet."""

    def __init__(self, current=1234):
        self.current = current

    @staticmethod
    def randomness(round_number):
        return hashlib.sha256(str(round_number).encode()).hexdigest()

    def handler(self, request):
        path = request.url.path.rsplit("/", 1)[-1]
        round_number = self.current if path == "latest" else int(path)
        if round_number > self.current:
            return httpx.Response(404, json={"error": "round not yet published"})
        return httpx.Response(
            200,
            json={
                "round": round_number,
                "randomness": self.randomness(round_number),
                "signature": "ff",
            },
        )

    def client(self):
        return BeaconClient(
            "https://beacon.test/public", transport=httpx.MockTransport(self.handler)
        )


def test_beacon_request_pinned_to_next_round():
    drand = FakeDrand(current=1234)
    client = drand.client()
    coordinator = BeaconCoordinator("0xc0", client)

    request_id = coordinator.request_random_words(REQUEST, RecordingConsumer())

    assert coordinator.min_round(request_id) == 1235
    client.close()


def test_beacon_waits_for_a_round_after_the_request():
    drand = FakeDrand(current=1234)
    client = drand.client()
    coordinator = BeaconCoordinator("0xc0", client)
    consumer = RecordingConsumer()
    request_id = coordinator.request_random_words(REQUEST, consumer)

    # The round known at request time must not answer it.
    assert coordinator.fulfill_pending() == {}
    assert consumer.calls == []
    assert coordinator.pending_requests == [request_id]

    drand.current = 1236
    used = coordinator.fulfill_pending()

    assert used[request_id].round == 1235
    assert consumer.calls[0][2] == derive_random_words(
        drand.randomness(1235), request_id, 2
    )
    assert consumer.calls[0][2] != derive_random_words(
        drand.randomness(1234), request_id, 2
    )
    assert coordinator.pending_requests == []
    client.close()


def test_beacon_fulfills_each_request_from_its_own_round():
    drand = FakeDrand(current=10)
    client = drand.client()
    coordinator = BeaconCoordinator("0xc0", client)
    consumer = RecordingConsumer()
    first = coordinator.request_random_words(REQUEST, consumer)
    drand.current = 11
    second = coordinator.request_random_words(REQUEST, consumer)
    drand.current = 12

    used = coordinator.fulfill_pending()

    assert used[first].round == 11
    assert used[second].round == 12
    assert [c[1] for c in consumer.calls] == [first, second]
    client.close()


def test_beacon_coordinator_nothing_pending():
    client = FakeDrand().client()
    assert BeaconCoordinator("0xc0", client).fulfill_pending() == {}
    client.close()


def test_min_round_unknown_request():
    with pytest.raises(InvalidRequest):
        MockCoordinator("0xc0").min_round(3)


def test_mock_requests_have_no_round():
    coordinator = MockCoordinator("0xc0")
    request_id = coordinator.request_random_words(REQUEST, RecordingConsumer())
    assert coordinator.min_round(request_id) is None
