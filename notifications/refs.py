"""
Typed reference from a notification to the object it is about.

A notification points at exactly one of a club, a post or a user, or at
nothing. The reference is persisted as (related_object_type,
related_object_id) and rebuilt through ``ref_from_columns``.
"""
from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class ClubRef:
    id: int
    kind = "CLUB"


@dataclass(frozen=True)
class PostRef:
    id: int
    kind = "POST"


@dataclass(frozen=True)
class UserRef:
    id: int
    kind = "USER"


RelatedRef = Union[ClubRef, PostRef, UserRef]

_REF_TYPES = {ref_type.kind: ref_type for ref_type in (ClubRef, PostRef, UserRef)}

KIND_CHOICES = (
    ("CLUB", "Club"),
    ("POST", "Post"),
    ("USER", "User"),
)


def ref_to_columns(ref: Optional[RelatedRef]):
    if ref is None:
        return None, None
    return ref.kind, ref.id


def ref_from_columns(kind: Optional[str], object_id: Optional[int]) -> Optional[RelatedRef]:
    if kind is None or object_id is None:
        return None
    try:
        return _REF_TYPES[kind](object_id)
    except KeyError:
        raise ValueError(f"Unknown related object type: {kind}")
