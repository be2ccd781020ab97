from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class StatusDefinition:
    value: str
    label: str
    owned: bool
    description: str


_STATUS_DEFINITIONS: tuple[StatusDefinition, ...] = (
    StatusDefinition(
        value="Not Started",
        label="Backlog",
        owned=True,
        description="Owned games that haven't been started yet.",
    ),
    StatusDefinition(
        value="In Progress",
        label="Playing",
        owned=True,
        description="Currently active or in-progress titles.",
    ),
    StatusDefinition(
        value="Completed",
        label="Completed",
        owned=True,
        description="Finished runs.",
    ),
    StatusDefinition(
        value="Abandoned",
        label="Abandoned",
        owned=True,
        description="Titles you've decided to set aside for good.",
    ),
    StatusDefinition(
        value="Wishlist",
        label="Wishlist",
        owned=False,
        description="Games you're considering picking up next.",
    ),
)

NOT_STARTED = "Not Started"
IN_PROGRESS = "In Progress"
COMPLETED = "Completed"
ABANDONED = "Abandoned"
WISHLIST = "Wishlist"

STATUS_BY_VALUE: Dict[str, StatusDefinition] = {
    definition.value: definition for definition in _STATUS_DEFINITIONS
}

STATUS_VALUES: tuple[str, ...] = tuple(STATUS_BY_VALUE.keys())

OWNED_STATUSES: tuple[str, ...] = tuple(
    value for value, definition in STATUS_BY_VALUE.items() if definition.owned
)

DEFAULT_STATUS = NOT_STARTED

PURCHASE_SOURCES: tuple[str, ...] = (
    "Steam",
    "PlayStation",
    "Xbox",
    "Nintendo",
    "Epic",
    "GOG",
    "Physical",
    "Other",
)

SUBSCRIPTION_SOURCES: tuple[str, ...] = (
    "PS Plus",
    "Game Pass",
    "Epic Free",
    "Prime Gaming",
    "Humble Choice",
    "Other",
)

_STATUS_LOOKUP: Dict[str, str] = {
    value.lower().replace(" ", ""): value for value in STATUS_VALUES
}



def normalize_status_value(value: str | None) -> str:
    """Normalize a raw status string into a canonical value.

    Matching ignores case, spaces, underscores and hyphens so ``in_progress``
    and ``IN PROGRESS`` both resolve to ``In Progress``. Unrecognised values
    are returned stripped so :func:`validate_status` can report them.
    """

    if value is None:
        return DEFAULT_STATUS
    stripped = str(value).strip()
    if not stripped:
        return DEFAULT_STATUS
    key = stripped.lower().replace("_", "").replace("-", "").replace(" ", "")
    return _STATUS_LOOKUP.get(key, stripped)



def validate_status(value: str | None) -> str:
    """Ensure the provided status maps to a supported value."""

    normalized = normalize_status_value(value)
    if normalized not in STATUS_BY_VALUE:
        allowed = ", ".join(STATUS_VALUES)
        raise ValueError(f"Status must be one of {allowed}.")
    return normalized



def is_owned(status: str) -> bool:
    definition = STATUS_BY_VALUE.get(status)
    return bool(definition and definition.owned)
