"""
MET API — Uploaded File Details
=================================

What:  Metadata record for a stored upload. The bytes live under
       settings.uploads_path/<filename>; `originalFilename` is the
       sanitized name the client sent.
"""

import re
from typing import Dict, Union

from pydantic import Field, StrictBool, StrictFloat, StrictInt, StrictStr

from met_api.models.base import Entity, IsoDateTime

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_REPEATED_UNDERSCORES = re.compile(r"_+")

MetadataValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr]


def sanitize_filename(filename: str) -> str:
    """Replaces unsafe character runs with "_" and collapses repeats."""
    return _REPEATED_UNDERSCORES.sub("_", _UNSAFE_CHARS.sub("_", filename))


class FileDetails(Entity):
    resource_name = "fileDetails"
    plural_name = "files"
    sort_field = "original_filename"
    date_field = "date_added"
    unique_field = "filename"
    owner_field = "authorId"

    original_filename: StrictStr
    filename: StrictStr
    date_added: IsoDateTime
    author_id: StrictStr
    mimetype: StrictStr
    size: StrictInt
    is_private: StrictBool
    metadata: Dict[str, MetadataValue] = Field(default_factory=dict)
