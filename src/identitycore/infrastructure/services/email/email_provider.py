"""Email provider interface and the message it delivers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.utils import formataddr


@dataclass(frozen=True)
class OutgoingEmail:
    """A fully rendered email addressed to one recipient."""

    to: str
    subject: str
    html_body: str
    text_body: str
    from_email: str
    from_name: str

    @property
    def sender(self) -> str:
        """The From header value, ``Name <address>``."""
        return formataddr((self.from_name, self.from_email))


class EmailProvider(ABC):
    """Transport for outgoing email (SMTP, console)."""

    @abstractmethod
    async def send(self, message: OutgoingEmail) -> None:
        """Deliver ``message``.

        Implementations raise on any delivery failure; returning means the
        transport accepted the message.
        """
