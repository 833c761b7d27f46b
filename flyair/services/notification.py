"""
Transactional email notifications, decoupled from the request transaction.

Services never talk to SMTP directly. They stage messages on the request's
``Outbox``; once the request transaction commits the outbox is released into
the ``NotificationDispatcher`` queue, and a rolled-back request discards it.
The dispatcher drains the queue in FIFO batches, re-queueing failed sends
until ``max_attempts`` is reached. A send failure never reaches the caller
that created the booking.

Key classes:
- EmailMessage: Rendered message plus its delivery attempt counter
- EmailSender: SMTP delivery (or a log line when mail is disabled)
- Outbox: Per-request staging area
- NotificationDispatcher: FIFO queue with batch processing and retry
- NotificationService: Template rendering for each notification type
"""

import logging
import queue
import smtplib
import threading
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional, Tuple

from markupsafe import escape

from ..utils.config import AppConfig

logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    to: str
    subject: str
    html: str
    attempts: int = 0


class EmailSender:
    """Deliver one message over SMTP."""

    def __init__(self, config: AppConfig):
        self.config = config

    def send(self, message: EmailMessage) -> None:
        """
        Send ``message``.

        Raises:
            smtplib.SMTPException, OSError: On delivery failure
        """
        if not self.config.mail_enabled:
            logger.info(f"Mail disabled, not sending '{message.subject}' to {message.to}")
            return

        msg = MIMEMultipart("alternative")
        msg["From"] = self.config.mail_from
        msg["To"] = message.to
        msg["Subject"] = message.subject
        msg.attach(MIMEText(message.html, "html"))

        if self.config.smtp_use_ssl:
            server = smtplib.SMTP_SSL(self.config.smtp_host, self.config.smtp_port, timeout=30)
        else:
            server = smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=30)

        with server:
            if not self.config.smtp_use_ssl:
                server.starttls()
            if self.config.smtp_username:
                server.login(self.config.smtp_username, self.config.smtp_password or "")
            server.sendmail(self.config.mail_from, [message.to], msg.as_string())

        logger.info(f"Email sent to {message.to}: {message.subject}")


class Outbox:
    """Messages staged during one request, released only after commit."""

    def __init__(self):
        self._staged: List[EmailMessage] = []

    def stage(self, message: EmailMessage) -> None:
        self._staged.append(message)

    @property
    def pending(self) -> List[EmailMessage]:
        return list(self._staged)

    def release(self, dispatcher: "NotificationDispatcher") -> int:
        """Hand every staged message to ``dispatcher`` and clear the outbox."""
        count = len(self._staged)
        for message in self._staged:
            dispatcher.enqueue(message)
        self._staged.clear()
        return count

    def discard(self) -> int:
        count = len(self._staged)
        if count:
            logger.info(f"Discarding {count} staged notification(s) after rollback")
        self._staged.clear()
        return count


class NotificationDispatcher:
    """
    FIFO notification queue with retry.

    ``process_queue`` can be called inline (tests, CLI) or from the optional
    background worker started with ``start()``.
    """

    def __init__(self, sender: EmailSender, max_attempts: int = 3, poll_interval: float = 1.0):
        self.sender = sender
        self.max_attempts = max_attempts
        self.poll_interval = poll_interval
        self._queue: "queue.Queue[EmailMessage]" = queue.Queue()
        self._stop = threading.Event()
        self._worker: Optional[threading.Thread] = None

    def enqueue(self, message: EmailMessage) -> None:
        self._queue.put(message)

    def get_queue_length(self) -> int:
        return self._queue.qsize()

    def process_queue(self, batch_size: int = 10) -> Tuple[int, int]:
        """
        Deliver up to ``batch_size`` queued messages.

        Failed messages go back to the tail of the queue once the batch is
        done, so a retry never runs in the batch that failed it. After
        ``max_attempts`` a message is dropped and logged.

        Returns:
            Tuple of (sent_count, failed_count) for this batch
        """
        sent = 0
        failed = 0
        retries: List[EmailMessage] = []

        try:
            for _ in range(batch_size):
                try:
                    message = self._queue.get_nowait()
                except queue.Empty:
                    break

                message.attempts += 1
                try:
                    self.sender.send(message)
                    sent += 1
                except (smtplib.SMTPException, OSError) as e:
                    failed += 1
                    if message.attempts < self.max_attempts:
                        logger.warning(
                            f"Delivery to {message.to} failed (attempt {message.attempts}/{self.max_attempts}): {e}"
                        )
                        retries.append(message)
                    else:
                        logger.error(
                            f"Giving up on '{message.subject}' to {message.to} after {message.attempts} attempts: {e}"
                        )
                finally:
                    self._queue.task_done()
        finally:
            for message in retries:
                self._queue.put(message)

        return sent, failed

    def flush_queue(self) -> int:
        """Process batches until the queue is empty. Returns messages sent."""
        total_sent = 0
        while self.get_queue_length() > 0:
            sent, _ = self.process_queue(batch_size=100)
            total_sent += sent
        return total_sent

    def start(self) -> None:
        """Run ``process_queue`` in a daemon thread until ``stop()``."""
        if self._worker and self._worker.is_alive():
            return
        self._stop.clear()
        self._worker = threading.Thread(target=self._run, name="notification-dispatcher", daemon=True)
        self._worker.start()
        logger.info("Notification dispatcher started")

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._worker:
            self._worker.join(timeout)
            self._worker = None
        logger.info("Notification dispatcher stopped")

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.process_queue()
            except Exception:
                logger.exception("Notification batch failed")
            self._stop.wait(self.poll_interval)


class NotificationService:
    """Render notification templates and stage them on the outbox."""

    def __init__(self, outbox: Outbox, config: AppConfig):
        self.outbox = outbox
        self.config = config

    def _stage(self, to: str, subject: str, body: str) -> None:
        html = (
            "<html><body style=\"font-family: Arial, sans-serif;\">"
            f"{body}"
            "<p>FlyAir Team</p>"
            "</body></html>"
        )
        self.outbox.stage(EmailMessage(to=to, subject=subject, html=html))

    def send_welcome_email(self, to: str, name: str) -> None:
        self._stage(
            to,
            "Welcome to FlyAir",
            f"<h2>Welcome aboard, {escape(name)}!</h2>"
            "<p>Your FlyAir account is ready. You can now search flights and book seats.</p>",
        )

    def send_booking_confirmation(
        self, to: str, name: str, reference: str, flight_number: str, departure_time: str
    ) -> None:
        self._stage(
            to,
            f"FlyAir - Booking Confirmation #{reference}",
            f"<h2>Thank you for your booking, {escape(name)}!</h2>"
            f"<p>Booking reference: <strong>{reference}</strong></p>"
            f"<p>Flight: {flight_number}</p>"
            f"<p>Departure: {departure_time}</p>"
            "<p>Please arrive at the airport at least 2 hours before departure.</p>",
        )

    def send_password_reset(self, to: str, token: str, name: str) -> None:
        link = f"{self.config.frontend_url}/reset-password?token={token}"
        self._stage(
            to,
            "FlyAir - Password Reset Request",
            f"<h2>Hello {escape(name)},</h2>"
            f"<p>Use the link below to reset your password. It expires in "
            f"{self.config.reset_token_ttl_hours} hour(s).</p>"
            f"<p><a href=\"{link}\">Reset password</a></p>"
            "<p>If you did not request a reset you can ignore this email.</p>",
        )

    def send_two_factor_enabled(self, to: str, name: str) -> None:
        self._stage(
            to,
            "FlyAir - Two-Factor Authentication Enabled",
            f"<h2>Hello {escape(name)},</h2>"
            "<p>Two-factor authentication is now enabled on your account.</p>",
        )
