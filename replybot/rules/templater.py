"""Variable expansion for auto-reply responses."""

from datetime import datetime

PLACEHOLDERS = ("{sender}", "{message}", "{time}", "{date}")


def strip_sender(sender: str) -> str:
    """
    Reduce a sender id to its user component.

    Examples:
        15551234567@s.whatsapp.net -> 15551234567
        15551234567:12@s.whatsapp.net -> 15551234567
    """
    return sender.split("@", 1)[0].split(":", 1)[0]


class ResponseTemplater:
    """
    Literal placeholder substitution.

    Only ``{sender}``, ``{message}``, ``{time}`` and ``{date}`` are expanded;
    anything else in braces is left as written.
    """

    time_format = "%H:%M:%S"
    date_format = "%Y-%m-%d"

    def render(
        self,
        template: str,
        sender: str = "",
        message: str = "",
        now: datetime | None = None,
    ) -> str:
        now = now or datetime.now()
        values = {
            "{sender}": strip_sender(sender),
            "{message}": message,
            "{time}": now.strftime(self.time_format),
            "{date}": now.strftime(self.date_format),
        }
        # Single pass so substituted text is never re-expanded
        out = []
        i = 0
        while i < len(template):
            for placeholder in PLACEHOLDERS:
                if template.startswith(placeholder, i):
                    out.append(values[placeholder])
                    i += len(placeholder)
                    break
            else:
                out.append(template[i])
                i += 1
        return "".join(out)
