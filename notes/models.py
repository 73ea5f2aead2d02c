"""
notes/models.py -- Domain dataclass for notes.

Pure data container. Filtering, sorting and ownership rules live in
notes/store.py and the route layer.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Note:
    """A note owned by one user.

    active is a soft visibility flag toggled by the owner; inactive notes stay
    in the database and can be filtered on in the admin listing.

    id is None before the record is written to the database.
    """

    title: str
    content: str
    created_by: int
    id: Optional[int] = None
    image_url: Optional[str] = None
    active: bool = True
    created_on: str = ""  # ISO 8601, set by store on insert
    updated_on: str = ""  # ISO 8601, refreshed by store on every update
