"""Session-related data models."""

from dataclasses import dataclass, field, replace
from enum import Enum

SESSION_NAMESPACE = "telegram_post"


class Stage(str, Enum):
    """What the dialogue expects next."""

    NONE = "none"
    AWAITING_TITLE = "awaiting_title"
    AWAITING_TAGS = "awaiting_tags"
    AWAITING_CATEGORY = "awaiting_category"
    AWAITING_CONTENT = "awaiting_content"
    AWAITING_PUBLISH_CONFIRMATION = "awaiting_publish_confirmation"


# Field filled while in each collecting stage, in dialogue order
STAGE_FIELDS: dict[Stage, str] = {
    Stage.AWAITING_TITLE: "title",
    Stage.AWAITING_TAGS: "tags",
    Stage.AWAITING_CATEGORY: "category",
    Stage.AWAITING_CONTENT: "content",
}

_STAGE_ORDER = list(Stage)


def next_stage(stage: Stage) -> Stage:
    """Stage that follows ``stage`` in the dialogue."""
    index = _STAGE_ORDER.index(stage)
    if index + 1 >= len(_STAGE_ORDER):
        raise ValueError(f"{stage.value} has no next stage")
    return _STAGE_ORDER[index + 1]


@dataclass(frozen=True)
class SessionKey:
    """Composite store key: (namespace, user id)."""

    namespace: str
    user_id: int

    @classmethod
    def for_user(cls, user_id: int) -> "SessionKey":
        return cls(namespace=SESSION_NAMESPACE, user_id=user_id)


@dataclass(frozen=True)
class Session:
    """Per-user dialogue state. Immutable; transitions return a new copy."""

    stage: Stage = Stage.NONE
    title: str | None = None
    tags: tuple[str, ...] | None = None
    category: str | None = None
    content: str | None = None

    def advance(self, **fields) -> "Session":
        """Copy with ``fields`` set and the stage moved one step forward."""
        return replace(self, stage=next_stage(self.stage), **fields)

    @property
    def is_complete(self) -> bool:
        return self.stage is Stage.AWAITING_PUBLISH_CONFIRMATION

    def to_dict(self) -> dict:
        return {
            "stage": self.stage.value,
            "title": self.title,
            "tags": list(self.tags) if self.tags is not None else None,
            "category": self.category,
            "content": self.content,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        tags = data.get("tags")
        return cls(
            stage=Stage(data.get("stage", Stage.NONE.value)),
            title=data.get("title"),
            tags=tuple(tags) if tags is not None else None,
            category=data.get("category"),
            content=data.get("content"),
        )


@dataclass
class PublishedRecord:
    """The four collected fields, handed once to the content publisher."""

    title: str
    category: str
    content: str
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_session(cls, session: Session) -> "PublishedRecord":
        if not session.is_complete:
            raise ValueError(
                f"Session at stage {session.stage.value} is not ready to publish"
            )
        return cls(
            title=session.title or "",
            tags=list(session.tags or ()),
            category=session.category or "",
            content=session.content or "",
        )
