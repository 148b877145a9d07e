"""Background renewal of a CertificateClient, driven by the real clock."""
from __future__ import annotations

import threading
import time
from unittest.mock import patch

from cluster_identity.certificates.renewal import THREAD_NAME, SchedulerState
from cluster_identity.client import CertificateClient
from cluster_identity.config import SecurityConfig
from cluster_identity.exceptions import KeyGenerationError
from cluster_identity.keys.generator import KeyGenerator

# Component certificates live two seconds and renew one second before expiry.
SHORT_LIVED = SecurityConfig(
    key_algorithm="EC",
    key_size=256,
    signature_algorithm="SHA256withECDSA",
    max_duration="P1D",
    default_duration="PT2S",
    renewal_grace_period="PT1S",
)


def _wait_for(predicate, timeout: float = 10.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


class EventReceiver:
    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []
        self.renewed = threading.Event()

    def notify_certificate_renewed(self, old_serial: str, new_serial: str) -> None:
        self.events.append((old_serial, new_serial))
        self.renewed.set()


class TestAutoRenew:
    def test_certificate_renewed_before_expiry(self) -> None:
        receiver = EventReceiver()
        with CertificateClient(SHORT_LIVED, auto_renew=True) as client:
            original = client.active_identity()
            client.register_notification_receiver(receiver)

            assert receiver.renewed.wait(10.0)
            old_serial, new_serial = receiver.events[0]
            assert old_serial == original.serial
            assert new_serial != original.serial
            assert client.certificate(old_serial) is not None
            assert client.certificate(new_serial) is not None

    def test_renewed_identity_signs_and_verifies(self) -> None:
        receiver = EventReceiver()
        with CertificateClient(SHORT_LIVED, auto_renew=True) as client:
            client.register_notification_receiver(receiver)
            assert receiver.renewed.wait(10.0)

            identity = client.active_identity()
            signature = client.sign_data(b"after renewal")
            assert client.verify_signature(b"after renewal", signature, identity.certificate)

    def test_scheduler_rearms_after_renewal(self) -> None:
        with CertificateClient(SHORT_LIVED, auto_renew=True) as client:
            scheduler = client.scheduler
            assert _wait_for(lambda: scheduler.renewals >= 2)
            assert scheduler.last_error is None

    def test_close_stops_renewal(self) -> None:
        receiver = EventReceiver()
        client = CertificateClient(SHORT_LIVED, auto_renew=True)
        client.register_notification_receiver(receiver)
        client.close()
        time.sleep(1.5)
        assert receiver.events == []
        assert client.scheduler.state is SchedulerState.CANCELLED


class TestFailedRenewal:
    def test_failure_recorded_and_identity_kept(self) -> None:
        with CertificateClient(SHORT_LIVED, auto_renew=True) as client:
            before = client.active_identity()
            with patch.object(KeyGenerator, "generate", side_effect=KeyGenerationError("hsm offline")):
                assert _wait_for(lambda: client.renewal_error is not None)
            assert isinstance(client.renewal_error, KeyGenerationError)
            assert client.active_identity() is before
            assert _wait_for(lambda: client.scheduler.state is SchedulerState.IDLE)

    def test_rearm_after_failure(self) -> None:
        receiver = EventReceiver()
        with CertificateClient(SHORT_LIVED, auto_renew=True) as client:
            client.register_notification_receiver(receiver)
            with patch.object(KeyGenerator, "generate", side_effect=KeyGenerationError("hsm offline")):
                assert _wait_for(lambda: client.renewal_error is not None)
            assert _wait_for(lambda: client.scheduler.state is SchedulerState.IDLE)

            client.schedule_renewal()
            assert receiver.renewed.wait(10.0)


class TestShutdown:
    def test_close_lets_in_flight_renewal_finish(self) -> None:
        receiver = EventReceiver()
        started = threading.Event()
        release = threading.Event()
        real_generate = KeyGenerator.generate

        def slow_generate(generator):
            if threading.current_thread().name == THREAD_NAME:
                started.set()
                release.wait(10.0)
            return real_generate(generator)

        client = CertificateClient(SHORT_LIVED, auto_renew=True)
        client.register_notification_receiver(receiver)
        with patch.object(KeyGenerator, "generate", autospec=True, side_effect=slow_generate):
            assert started.wait(10.0)
            closer = threading.Thread(target=client.close)
            closer.start()
            assert _wait_for(lambda: client.scheduler.state is SchedulerState.CANCELLED)
            release.set()
            closer.join(10.0)

        assert not closer.is_alive()
        assert client.closed
        assert client.renewal_error is None
        assert client.scheduler.last_error is None
        assert len(receiver.events) == 1

class TestConcurrentReaders:
    def test_readers_never_see_mismatched_pair(self) -> None:
        config = SHORT_LIVED.with_overrides(
            max_duration="P365D", default_duration="P30D", renewal_grace_period="P7D"
        )
        mismatches: list[str] = []
        stop = threading.Event()

        with CertificateClient(config) as client:

            def reader() -> None:
                while not stop.is_set():
                    identity = client.active_identity()
                    if identity.public_key != identity.certificate.public_key():
                        mismatches.append(identity.serial)
                    if client.certificate(identity.serial) is None:
                        mismatches.append(f"missing {identity.serial}")

            readers = [threading.Thread(target=reader) for _ in range(4)]
            for thread in readers:
                thread.start()
            try:
                for _ in range(20):
                    client.renew()
            finally:
                stop.set()
                for thread in readers:
                    thread.join()

            assert mismatches == []
            assert len(client.store) == 22
