"""Request snapshot adapters for host frameworks."""

from errorcapture.adapters.starlette import StarletteRequestSnapshot
from errorcapture.adapters.wsgi import WSGIRequestSnapshot

__all__ = [
    "StarletteRequestSnapshot",
    "WSGIRequestSnapshot",
]
