"""Tests for the admin gate — PIN check and GUEST/ADMIN transitions."""

import pytest

from filestore.services.admin_gate import AdminGate, SessionState


@pytest.fixture
def gate():
    return AdminGate(admin_secret="432272")


class TestInitialState:
    def test_starts_guest(self, gate):
        assert gate.state == SessionState.GUEST
        assert gate.is_admin is False

    def test_has_timestamp(self, gate):
        assert gate.since is not None


class TestAuthenticate:
    def test_correct_pin_grants_admin(self, gate):
        assert gate.authenticate("432272") is True
        assert gate.state == SessionState.ADMIN
        assert gate.is_admin is True

    @pytest.mark.parametrize("pin", ["", "432271", " 432272", "432272 ", "4322720"])
    def test_other_strings_rejected(self, gate, pin):
        assert gate.authenticate(pin) is False
        assert gate.state == SessionState.GUEST

    def test_failed_attempt_keeps_timestamp(self, gate):
        since = gate.since
        gate.authenticate("nope")
        assert gate.since == since

    def test_authenticate_while_admin_stays_admin(self, gate):
        gate.authenticate("432272")
        assert gate.authenticate("432272") is True
        assert gate.is_admin is True

    def test_wrong_pin_while_admin_keeps_admin(self, gate):
        gate.authenticate("432272")
        assert gate.authenticate("wrong") is False
        assert gate.is_admin is True


class TestLogout:
    def test_logout_from_admin(self, gate):
        gate.authenticate("432272")
        gate.logout()
        assert gate.state == SessionState.GUEST

    def test_logout_from_guest_is_noop(self, gate):
        since = gate.since
        gate.logout()
        assert gate.state == SessionState.GUEST
        assert gate.since == since

    def test_new_gate_forgets_admin(self, gate):
        gate.authenticate("432272")
        assert AdminGate(admin_secret="432272").is_admin is False


def test_to_dict(gate):
    gate.authenticate("432272")
    d = gate.to_dict()
    assert d["is_admin"] is True
    assert d["state"] == "admin"
    assert "since" in d
