"""User-facing texts and the /start reply keyboard."""

from ..models import OutboundMessage, Stage

WELCOME = (
    "Welcome! Use the menu below to navigate: "
    "/post - Begin a new session "
    "/endsession - Cancel the current session."
)
SESSION_ENDED = "Session ended. Use /start to begin again."
SEND_TITLE = "Send the post title."
SEND_TAGS = "Title saved. Now, send tags (comma-separated)."
SEND_TAGS_OR_SKIP = "Title saved. Now, send tags (comma-separated) or /skip for none."
SEND_CATEGORY = "Tags saved. Now, send a category."
SEND_CONTENT = "Category saved. Now, send the content."
CONFIRM_PUBLISH = "Content saved. Type publish to submit your post."
INVALID_CONFIRMATION = (
    "Invalid command. Type publish to submit your post or /endsession to cancel."
)
NO_ACTIVE_SESSION = "No active session. Use /post to create a new post."
UNAUTHORIZED = "Unauthorized user."
PUBLISHED = "Post submitted successfully! View: {permalink}"
PUBLISH_FAILED = "Error creating post: {reason}"
PUBLISHER_UNAVAILABLE = "the publishing service failed unexpectedly"

# Prompt sent once the field of the given stage has been stored
FIELD_SAVED: dict[Stage, str] = {
    Stage.AWAITING_TITLE: SEND_TAGS,
    Stage.AWAITING_TAGS: SEND_CATEGORY,
    Stage.AWAITING_CATEGORY: SEND_CONTENT,
    Stage.AWAITING_CONTENT: CONFIRM_PUBLISH,
}

MENU_KEYBOARD = {
    "keyboard": [
        [{"text": "/post"}, {"text": "/endsession"}],
    ],
    "resize_keyboard": True,
    "one_time_keyboard": False,
}


def welcome_message() -> OutboundMessage:
    return OutboundMessage(text=WELCOME, extra={"reply_markup": MENU_KEYBOARD})


def field_saved_message(stage: Stage, allow_tag_skip: bool = False) -> OutboundMessage:
    if stage is Stage.AWAITING_TITLE and allow_tag_skip:
        return OutboundMessage(text=SEND_TAGS_OR_SKIP)
    return OutboundMessage(text=FIELD_SAVED[stage])
