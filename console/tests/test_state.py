import pytest

from checkin.errors import InvalidTransition
from checkin.state import CheckinResult, ScanMode, ScanSession, ScanSnapshot, ScanState


def test_session_moves_forward_through_the_pipeline():
    session = ScanSession(mode=ScanMode.IMAGE_UPLOAD)
    session.advance(ScanState.ACQUIRING)
    session.decoded("https://x/AB-1", "AB-1")
    session.advance(ScanState.SUBMITTING)
    session.settle(CheckinResult(success=True, message="ok"))

    assert session.state == ScanState.SETTLED
    assert session.raw_payload == "https://x/AB-1"
    assert session.ticket_id == "AB-1"
    assert session.outcome == CheckinResult(success=True, message="ok")
    assert session.is_terminal


def test_acquisition_failure_can_settle_directly():
    session = ScanSession(mode=ScanMode.CAMERA_STREAM)
    session.advance(ScanState.ACQUIRING)
    session.settle(CheckinResult(success=False, message="no code"))
    assert session.state == ScanState.SETTLED
    assert session.ticket_id is None


@pytest.mark.parametrize("target", [ScanState.IDLE, ScanState.ACQUIRING, ScanState.DECODED])
def test_states_are_never_revisited(target):
    session = ScanSession(mode=ScanMode.IMAGE_UPLOAD)
    session.advance(ScanState.ACQUIRING)
    session.decoded("a", "a")
    with pytest.raises(InvalidTransition):
        session.advance(target)


def test_settled_session_cannot_settle_again():
    session = ScanSession(mode=ScanMode.IMAGE_UPLOAD)
    session.advance(ScanState.ACQUIRING)
    session.settle(CheckinResult(success=False, message="first"))
    with pytest.raises(InvalidTransition):
        session.settle(CheckinResult(success=True, message="second"))
    assert session.outcome.message == "first"


def test_cancel_only_while_acquiring():
    session = ScanSession(mode=ScanMode.CAMERA_STREAM)
    with pytest.raises(InvalidTransition):
        session.cancel()
    session.advance(ScanState.ACQUIRING)
    session.cancel()
    assert session.is_terminal
    with pytest.raises(InvalidTransition):
        session.advance(ScanState.DECODED)


def test_snapshot_of_cancelled_session_is_idle_without_outcome():
    session = ScanSession(mode=ScanMode.CAMERA_STREAM)
    session.advance(ScanState.ACQUIRING)
    session.cancel()
    snapshot = ScanSnapshot.of(session)
    assert snapshot.state == ScanState.IDLE
    assert snapshot.as_dict()["outcome"] is None


def test_snapshot_renders_outcome():
    session = ScanSession(mode=ScanMode.IMAGE_UPLOAD)
    session.advance(ScanState.ACQUIRING)
    session.settle(CheckinResult(success=False, message="Ticket already checked in"))
    payload = ScanSnapshot.of(session).as_dict()
    assert payload["state"] == "settled"
    assert payload["mode"] == "image_upload"
    assert payload["outcome"] == {"success": False, "message": "Ticket already checked in"}
