"""
Test suite for the notification outbox and dispatcher queue.
"""

import smtplib
import threading

import pytest

from flyair.services import EmailMessage, NotificationDispatcher, NotificationService, Outbox

from conftest import RecordingSender


def message(n):
    return EmailMessage(to=f"user{n}@example.com", subject=f"Message {n}", html="<p>hi</p>")


class TestOutbox:

    def test_release_moves_messages_to_dispatcher(self, outbox, dispatcher):
        outbox.stage(message(1))
        outbox.stage(message(2))

        assert outbox.release(dispatcher) == 2
        assert outbox.pending == []
        assert dispatcher.get_queue_length() == 2

    def test_discard_drops_everything(self, outbox, dispatcher):
        outbox.stage(message(1))

        assert outbox.discard() == 1
        assert outbox.release(dispatcher) == 0
        assert dispatcher.get_queue_length() == 0


class TestDispatcher:

    def test_fifo_batches(self, dispatcher, sender):
        for n in range(5):
            dispatcher.enqueue(message(n))

        assert dispatcher.process_queue(batch_size=3) == (3, 0)
        assert dispatcher.get_queue_length() == 2
        assert dispatcher.process_queue(batch_size=3) == (2, 0)
        assert [m.subject for m in sender.sent] == [f"Message {n}" for n in range(5)]

    def test_empty_queue(self, dispatcher):
        assert dispatcher.process_queue() == (0, 0)

    def test_failed_send_is_retried(self, app_config):
        sender = RecordingSender(app_config, failures=1)
        dispatcher = NotificationDispatcher(sender, max_attempts=3)
        dispatcher.enqueue(message(1))

        assert dispatcher.process_queue() == (0, 1)
        assert dispatcher.get_queue_length() == 1
        assert dispatcher.process_queue() == (1, 0)
        assert sender.sent[0].attempts == 2

    def test_retry_waits_for_next_batch(self, app_config):
        sender = RecordingSender(app_config, failures=1)
        dispatcher = NotificationDispatcher(sender, max_attempts=3)
        dispatcher.enqueue(message(1))
        dispatcher.enqueue(message(2))

        assert dispatcher.process_queue(batch_size=10) == (1, 1)
        assert sender.calls == 2
        assert [m.subject for m in sender.sent] == ["Message 2"]
        assert dispatcher.process_queue(batch_size=10) == (1, 0)

    def test_gives_up_after_max_attempts(self, app_config):
        sender = RecordingSender(app_config, failures=10)
        dispatcher = NotificationDispatcher(sender, max_attempts=3)
        dispatcher.enqueue(message(1))

        assert dispatcher.flush_queue() == 0
        assert sender.calls == 3
        assert dispatcher.get_queue_length() == 0

    def test_smtp_errors_are_retried(self, app_config):
        class FlakySmtp(RecordingSender):
            def send(self, msg):
                self.calls += 1
                if self.calls == 1:
                    raise smtplib.SMTPServerDisconnected("connection lost")
                self.sent.append(msg)

        sender = FlakySmtp(app_config)
        dispatcher = NotificationDispatcher(sender, max_attempts=2)
        dispatcher.enqueue(message(1))

        assert dispatcher.flush_queue() == 1

    def test_programming_errors_propagate(self, app_config):
        class BrokenSender(RecordingSender):
            def send(self, msg):
                raise ValueError("template bug")

        dispatcher = NotificationDispatcher(BrokenSender(app_config))
        dispatcher.enqueue(message(1))

        with pytest.raises(ValueError):
            dispatcher.process_queue()

    def test_worker_survives_unexpected_errors(self, app_config):
        delivered = threading.Event()

        class FirstCallBroken(RecordingSender):
            def send(self, msg):
                self.calls += 1
                if self.calls == 1:
                    raise ValueError("template bug")
                self.sent.append(msg)
                delivered.set()

        sender = FirstCallBroken(app_config)
        dispatcher = NotificationDispatcher(sender, poll_interval=0.01)
        dispatcher.enqueue(message(1))
        dispatcher.start()
        try:
            dispatcher.enqueue(message(2))
            assert delivered.wait(timeout=5)
        finally:
            dispatcher.stop()

        assert [m.subject for m in sender.sent] == ["Message 2"]


class TestNotificationService:

    def test_templates_are_staged_not_sent(self, app_config, sender):
        outbox = Outbox()
        notifications = NotificationService(outbox, app_config)

        notifications.send_booking_confirmation(
            "jdoe@example.com", "John Doe", "FLYABC12345", "FA101", "2030-01-20 12:00"
        )
        notifications.send_password_reset("jdoe@example.com", "tok3n", "John Doe")

        assert sender.sent == []
        subjects = [m.subject for m in outbox.pending]
        assert subjects == ["FlyAir - Booking Confirmation #FLYABC12345", "FlyAir - Password Reset Request"]
        assert f"{app_config.frontend_url}/reset-password?token=tok3n" in outbox.pending[1].html

    def test_names_are_html_escaped(self, app_config):
        outbox = Outbox()
        notifications = NotificationService(outbox, app_config)

        notifications.send_welcome_email("x@example.com", "<script>alert(1)</script>")

        html = outbox.pending[0].html
        assert "<script>" not in html
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
