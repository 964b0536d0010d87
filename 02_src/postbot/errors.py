"""Error taxonomy for webhook handling."""


class PostBotError(Exception):
    """Base error. ``status_code`` and ``public_message`` shape the HTTP reply."""

    status_code = 500
    public_message = "Internal error"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.public_message)
        self.detail = detail or self.public_message


class ConfigError(PostBotError):
    """Bot token is not configured; nothing can be sent."""

    status_code = 400
    public_message = "Bot token missing"


class MalformedUpdate(PostBotError):
    """Update carries no message payload, so there is no chat to reply to."""

    status_code = 400
    public_message = "No message received"


class AuthError(PostBotError):
    """Sender is not in the authorized user set."""

    status_code = 403
    public_message = "Unauthorized user"


class PublishError(PostBotError):
    """Content store rejected the post. Never leaves the publisher."""

    public_message = "Publishing failed"


class SendError(PostBotError):
    """Telegram did not accept an outbound message. Never leaves the sender."""

    public_message = "Sending failed"
