"""
MET API — Notes Routes (/api/notes)
=====================================

What:  Personal notes, newest first. Every route is scoped to the caller:
       authorId is taken from the auth model, never from the body.
"""

from fastapi import APIRouter

from met_api.models import Note
from met_api.routes.crud import Resource, register_resource

router = APIRouter(prefix="/api/notes", tags=["Notes"])

register_resource(
    router,
    Resource(Note, lambda r: r.notes, scope_to_auth=True, date_range=True),
)
