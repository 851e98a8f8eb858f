"""Pipeline stages.

Services coordinate the domain layer (core/, archives/) with infrastructure
(git/, tools/) and report through the console abstraction.
"""

from relpipe.services.archive import ArchiveOptions, Archivist
from relpipe.services.layout import DistLayout, archive_name
from relpipe.services.release import ReleaseOptions, Releaser

__all__ = [
    "ArchiveOptions",
    "Archivist",
    "DistLayout",
    "ReleaseOptions",
    "Releaser",
    "archive_name",
]
