"""Feed query parsing.

The CRM requests the feed as "<ids>.xml", where <ids> is either "all" or a
comma-separated list of project IDs.
"""

import re
from dataclasses import dataclass, field
from typing import List

from core.errors import DomainError

QUERY_PATTERN = re.compile(r"^(all|\d+(,\d+)*)\.xml$")


@dataclass(frozen=True)
class FeedQuery:
    """A parsed feed query."""
    text: str
    all_projects: bool = False
    project_ids: List[int] = field(default_factory=list)


def parse_feed_query(text: str) -> FeedQuery:
    """Parse "all.xml" or "12,10000345.xml".

    Raises:
        DomainError: If the query does not match the expected format
    """
    match = QUERY_PATTERN.match(text or "")
    if match is None:
        raise DomainError(f"Invalid query: '{text}'.")

    ids = match.group(1)
    if ids == "all":
        return FeedQuery(text=text, all_projects=True)
    return FeedQuery(text=text, project_ids=[int(id) for id in ids.split(",")])
