"""Command classification for inbound text."""

from enum import Enum

from ..models import Session, Stage

START_COMMAND = "/start"
END_SESSION_COMMAND = "/endsession"
POST_COMMAND = "/post"
SKIP_COMMAND = "/skip"
PUBLISH_KEYWORD = "publish"


class Command(str, Enum):
    """Which transition an inbound text triggers."""

    START = "start"
    END_SESSION = "end_session"
    BEGIN_POST = "begin_post"
    PUBLISH = "publish"
    SKIP = "skip"
    FIELD_INPUT = "field_input"
    IGNORE_NO_SESSION = "ignore_no_session"


def command_name(text: str) -> str | None:
    """Bot command in ``text``, without arguments or an @botname suffix.

    ``"/start@my_bot payload"`` gives ``"/start"``; plain text gives None.
    """
    stripped = text.strip()
    if not stripped.startswith("/"):
        return None
    token = stripped.split(maxsplit=1)[0]
    return token.split("@", 1)[0].lower()


def classify(
    text: str,
    session: Session | None,
    allow_tag_skip: bool = False,
) -> Command:
    """Decide which transition ``text`` triggers for the current session.

    /start and /endsession win at every stage. /post is always a command;
    mid-flow it leaves the collected fields alone. "publish" only counts while
    a complete post is waiting for confirmation, so it can still be used as a
    title or tag. Everything else is the value for the current stage, or is
    ignored when no post is in progress.
    """
    command = command_name(text)

    if command == START_COMMAND:
        return Command.START
    if command == END_SESSION_COMMAND:
        return Command.END_SESSION
    if command == POST_COMMAND:
        return Command.BEGIN_POST

    if session is None or session.stage is Stage.NONE:
        return Command.IGNORE_NO_SESSION

    if session.stage is Stage.AWAITING_PUBLISH_CONFIRMATION:
        if text.strip().lower() == PUBLISH_KEYWORD:
            return Command.PUBLISH
    elif session.stage is Stage.AWAITING_TAGS:
        if allow_tag_skip and command == SKIP_COMMAND:
            return Command.SKIP

    return Command.FIELD_INPUT
