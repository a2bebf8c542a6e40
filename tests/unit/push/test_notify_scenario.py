"""Two-device channel: the sender is skipped and a repeated event is absorbed."""
from push.models import MatchPushEvent
from tests.mocks.push_mocks import subscription_json


def notify(service, event_id="evt-9"):
    return service.notify_match(MatchPushEvent.model_validate({
        "channelId": "c1",
        "authToken": "tok",
        "senderDeviceId": "deviceA",
        "locale": "en",
        "eventId": event_id,
        "playedAt": "2024-05-01T12:00:00.000Z",
        "playerAName": "Alice",
        "playerBName": "Bob",
        "winnerName": "Bob",
        "playerARank": 1,
        "playerBRank": 2,
        "playerARating": 1508,
        "playerBRating": 1492,
    }))


def test_first_notify_reaches_the_other_device(push_service, recording_transport):
    push_service.subscribe("c1", "tok", "deviceA", "en", subscription_json("https://push/ep1"))
    push_service.subscribe("c1", "tok", "deviceB", "en", subscription_json("https://push/ep2"))

    outcome = notify(push_service)

    assert not outcome.deduped
    assert (outcome.result.sent, outcome.result.attempted, outcome.result.skipped_sender) == (1, 1, 1)
    assert [endpoint for endpoint, _ in recording_transport.sent] == ["https://push/ep2"]
    assert '"#2 Bob (1492) defeated #1 Alice (1508)!"' in recording_transport.sent[0][1]


def test_same_event_again_is_deduped(push_service, recording_transport):
    push_service.subscribe("c1", "tok", "deviceA", "en", subscription_json("https://push/ep1"))
    push_service.subscribe("c1", "tok", "deviceB", "en", subscription_json("https://push/ep2"))
    notify(push_service)

    outcome = notify(push_service)

    assert outcome.deduped
    assert outcome.result.sent == 0
    assert len(recording_transport.sent) == 1


def test_new_event_id_is_delivered(push_service, recording_transport):
    push_service.subscribe("c1", "tok", "deviceA", "en", subscription_json("https://push/ep1"))
    push_service.subscribe("c1", "tok", "deviceB", "en", subscription_json("https://push/ep2"))
    notify(push_service)

    assert not notify(push_service, event_id="evt-10").deduped
    assert len(recording_transport.sent) == 2
