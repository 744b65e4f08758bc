"""MET API — Note entity (newest first, owned by its author)."""

from pydantic import StrictStr

from met_api.models.base import Entity, IsoDateTime


class Note(Entity):
    resource_name = "note"
    plural_name = "notes"
    sort_field = "date_added"
    sort_descending = True
    date_field = "date_added"
    owner_field = "authorId"

    title: StrictStr
    content: StrictStr
    date_added: IsoDateTime
    author_id: StrictStr
