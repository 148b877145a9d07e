"""Tests for cluster_identity.notification — NotificationRegistry."""
from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from cluster_identity.notification import CertificateNotification, NotificationRegistry


class Recorder:
    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def notify_certificate_renewed(self, old_serial: str, new_serial: str) -> None:
        self.events.append((old_serial, new_serial))


class Exploding:
    def notify_certificate_renewed(self, old_serial: str, new_serial: str) -> None:
        raise RuntimeError("receiver failed")


@pytest.fixture()
def registry() -> NotificationRegistry:
    return NotificationRegistry()


class TestRegister:
    def test_register_adds_receiver(self, registry) -> None:
        registry.register(Recorder())
        assert len(registry) == 1

    def test_re_register_is_noop(self, registry) -> None:
        receiver = Recorder()
        registry.register(receiver)
        registry.register(receiver)
        assert len(registry) == 1

    def test_rejects_object_without_callback(self, registry) -> None:
        with pytest.raises(TypeError, match="notify_certificate_renewed"):
            registry.register(object())  # type: ignore[arg-type]

    def test_recorder_satisfies_protocol(self) -> None:
        assert isinstance(Recorder(), CertificateNotification)

    def test_unregister(self, registry) -> None:
        receiver = Recorder()
        registry.register(receiver)
        registry.unregister(receiver)
        assert len(registry) == 0


class TestFanOut:
    def test_every_receiver_gets_one_event(self, registry) -> None:
        receivers = [Recorder() for _ in range(3)]
        for receiver in receivers:
            registry.register(receiver)
        registry.fan_out("1", "2")
        for receiver in receivers:
            assert receiver.events == [("1", "2")]

    def test_failing_receiver_does_not_block_others(self, registry) -> None:
        good = Recorder()
        bad = Exploding()
        registry.register(bad)
        registry.register(good)
        failures = registry.fan_out("1", "2")
        assert good.events == [("1", "2")]
        assert len(failures) == 1
        assert failures[0].receiver is bad
        assert isinstance(failures[0].error, RuntimeError)

    def test_no_receivers(self, registry) -> None:
        assert registry.fan_out("1", "2") == []

    def test_mock_receiver_called_with_serials(self, registry) -> None:
        receiver = MagicMock(spec=["notify_certificate_renewed"])
        registry.register(receiver)
        registry.fan_out("10", "11")
        receiver.notify_certificate_renewed.assert_called_once_with("10", "11")

    def test_registration_during_fan_out(self, registry) -> None:
        late = Recorder()

        class Registering:
            def notify_certificate_renewed(self, old_serial: str, new_serial: str) -> None:
                registry.register(late)

        registry.register(Registering())
        registry.fan_out("1", "2")
        assert late in registry.receivers()
        registry.fan_out("2", "3")
        assert late.events == [("2", "3")]

    def test_concurrent_register_and_fan_out(self, registry) -> None:
        stop = threading.Event()
        errors: list[BaseException] = []

        def fan_out_loop() -> None:
            try:
                while not stop.is_set():
                    registry.fan_out("a", "b")
            except BaseException as exc:  # pragma: no cover - reported below
                errors.append(exc)

        thread = threading.Thread(target=fan_out_loop)
        thread.start()
        try:
            for _ in range(200):
                registry.register(Recorder())
        finally:
            stop.set()
            thread.join()
        assert errors == []
        assert len(registry) == 200
