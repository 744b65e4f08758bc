"""
MET API — Blog Post Entity
============================

What:  A blog post addressed publicly by its slug.
Rules:
    - slug is non-empty and unique within the repository
    - status is "posted" or "draft"; anything else is read as "posted"
    - updateAuthorId / dateUpdated are only present after an edit
"""

from enum import Enum
from typing import Annotated, Any, Optional, Tuple

from pydantic import BeforeValidator, StrictStr, StringConstraints

from met_api.models.base import Entity, IsoDateTime


class BlogStatus(str, Enum):
    POSTED = "posted"
    DRAFT = "draft"


def _status_from_value(value: Any) -> BlogStatus:
    if value == BlogStatus.DRAFT.value:
        return BlogStatus.DRAFT
    return BlogStatus.POSTED


class BlogPost(Entity):
    resource_name = "post"
    plural_name = "posts"
    sort_field = "date_added"
    sort_descending = True
    date_field = "date_added"
    unique_field = "slug"
    owner_field = "authorId"

    title: StrictStr
    slug: Annotated[StrictStr, StringConstraints(min_length=1)]
    body: StrictStr
    tags: Tuple[StrictStr, ...]
    author_id: StrictStr
    date_added: IsoDateTime
    status: Annotated[BlogStatus, BeforeValidator(_status_from_value)] = BlogStatus.POSTED
    update_author_id: Optional[StrictStr] = None
    date_updated: Optional[IsoDateTime] = None

    @property
    def is_posted(self) -> bool:
        return self.status is BlogStatus.POSTED
