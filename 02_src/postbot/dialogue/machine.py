"""Conversation state machine.

``transition`` is pure: it never touches storage, the network or the clock.
It returns the new session together with what the dispatcher must do with
it, so the dispatcher never has to guess from which fields happen to be set.
"""

from dataclasses import dataclass
from enum import Enum

from ..models import STAGE_FIELDS, OutboundMessage, Session, Stage
from . import prompts
from .classifier import Command

STATUS_STARTED = "Session started"
STATUS_ENDED = "Session ended"
STATUS_PROCESSED = "Request processed"
STATUS_PUBLISHED = "Post submitted and session ended"
STATUS_PUBLISH_FAILED = "Post submission failed"


class SessionEffect(str, Enum):
    """What the dispatcher does with the session after a transition."""

    SAVE = "save"
    DELETE = "delete"
    KEEP = "keep"  # leave the stored session untouched
    PUBLISH = "publish"  # hand the record to the publisher, then delete on success


@dataclass(frozen=True)
class Transition:
    """Result of one step of the dialogue."""

    session: Session | None
    effect: SessionEffect
    reply: OutboundMessage | None  # None when the publish result supplies it
    status: str = STATUS_PROCESSED


def parse_tags(text: str) -> tuple[str, ...]:
    """Split on commas, trim each tag and drop empty ones."""
    return tuple(tag.strip() for tag in text.split(",") if tag.strip())


def transition(
    session: Session | None,
    command: Command,
    text: str = "",
    allow_tag_skip: bool = False,
) -> Transition:
    """Compute the next session and prompt for a classified input."""
    if command is Command.START:
        return Transition(
            session=Session(),
            effect=SessionEffect.SAVE,
            reply=prompts.welcome_message(),
            status=STATUS_STARTED,
        )

    if command is Command.END_SESSION:
        return Transition(
            session=None,
            effect=SessionEffect.DELETE,
            reply=OutboundMessage(prompts.SESSION_ENDED),
            status=STATUS_ENDED,
        )

    current = session or Session()

    if command is Command.IGNORE_NO_SESSION or (
        command is Command.FIELD_INPUT and current.stage is Stage.NONE
    ):
        return Transition(
            session=session,
            effect=SessionEffect.KEEP,
            reply=OutboundMessage(prompts.NO_ACTIVE_SESSION),
        )

    if command is Command.BEGIN_POST:
        if current.stage is Stage.NONE:
            return Transition(
                session=current.advance(),
                effect=SessionEffect.SAVE,
                reply=OutboundMessage(prompts.SEND_TITLE),
            )
        # Mid-flow /post re-prompts but keeps what was collected so far
        return Transition(
            session=current,
            effect=SessionEffect.KEEP,
            reply=OutboundMessage(prompts.SEND_TITLE),
        )

    if command is Command.PUBLISH:
        if not current.is_complete:
            raise ValueError(f"Cannot publish from stage {current.stage.value}")
        return Transition(
            session=current,
            effect=SessionEffect.PUBLISH,
            reply=None,
            status=STATUS_PUBLISHED,
        )

    if command is Command.SKIP:
        if current.stage is not Stage.AWAITING_TAGS:
            raise ValueError(f"Cannot skip at stage {current.stage.value}")
        return Transition(
            session=current.advance(tags=()),
            effect=SessionEffect.SAVE,
            reply=prompts.field_saved_message(Stage.AWAITING_TAGS),
        )

    if current.stage is Stage.AWAITING_PUBLISH_CONFIRMATION:
        return Transition(
            session=current,
            effect=SessionEffect.KEEP,
            reply=OutboundMessage(prompts.INVALID_CONFIRMATION),
        )

    field_name = STAGE_FIELDS[current.stage]
    value = parse_tags(text) if field_name == "tags" else text.strip()
    return Transition(
        session=current.advance(**{field_name: value}),
        effect=SessionEffect.SAVE,
        reply=prompts.field_saved_message(current.stage, allow_tag_skip),
    )
