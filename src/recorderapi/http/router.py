"""
=============================================================================
URL ROUTER
=============================================================================

Maps normalized request paths to handler functions.

The control API is a small, closed set of endpoints, so routing is an
exact dictionary lookup rather than pattern matching:

    ┌──────────────────────────┬─────────────────────────────┐
    │ Normalized path          │ Handler                      │
    ├──────────────────────────┼─────────────────────────────┤
    │ "start"                  │ start_or_resume              │
    │ "record/start"           │ start_or_resume              │
    │ "status"                 │ status                       │
    │ ...                      │ ...                          │
    └──────────────────────────┴─────────────────────────────┘

Exact routes are tried first. If none matches, prefix routes are tried in
registration order (the legacy "api/" route is the only one). Anything left
over is a 404.

Methods are NOT part of the match: GET and POST reach the same handler.

=============================================================================
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
import logging

from .request import HTTPRequest
from .response import HTTPResponse, not_found


logger = logging.getLogger(__name__)


Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass
class Route:
    """
    A registered route.

    Attributes:
        path:    Normalized path ("record/start") or prefix ("api/").
        handler: Function called with the request.
        prefix:  True if path is matched as a prefix.
        name:    Optional label shown by describe().
    """

    path: str
    handler: Handler
    prefix: bool = False
    name: Optional[str] = None


class Router:
    """
    Exact-match request router.

    Usage:
        router = Router()

        @router.route("status", "record/status")
        def status(request):
            return json_response({...})

        router.add_prefix("api/", legacy_api)

        response = router.handle(request)
    """

    def __init__(self):
        self._exact: Dict[str, Route] = {}
        self._prefixes: List[Route] = []

    def add_route(self, path: str, handler: Handler, name: Optional[str] = None) -> Route:
        """
        Register a handler for one exact normalized path.

        Raises:
            ValueError: If the path is already registered.
        """
        if path in self._exact:
            raise ValueError(f"Route already registered: {path!r}")

        route = Route(path=path, handler=handler, name=name or handler.__name__)
        self._exact[path] = route
        return route

    def add_prefix(self, prefix: str, handler: Handler, name: Optional[str] = None) -> Route:
        """Register a handler for every path starting with prefix."""
        route = Route(path=prefix, handler=handler, prefix=True, name=name or handler.__name__)
        self._prefixes.append(route)
        return route

    def route(self, *paths: str) -> Callable[[Handler], Handler]:
        """
        Decorator registering one handler under several aliases.

            @router.route("pause", "record/pause")
            def pause(request): ...
        """
        def decorator(handler: Handler) -> Handler:
            for path in paths:
                self.add_route(path, handler)
            return handler
        return decorator

    def match(self, path: str) -> Optional[Route]:
        """
        Find the route for a normalized path.

        Returns:
            The exact route, else the first matching prefix route, else None.
        """
        route = self._exact.get(path)
        if route is not None:
            return route

        for route in self._prefixes:
            if path.startswith(route.path):
                return route

        return None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Dispatch a request, answering 404 "Not Found" for unknown paths."""
        route = self.match(request.path)
        if route is None:
            logger.warning(f"Unknown path: {request.path}")
            return not_found()
        return route.handler(request)

    @property
    def routes(self) -> List[Route]:
        """All routes, exact ones first."""
        return list(self._exact.values()) + list(self._prefixes)

    def describe(self) -> str:
        """One line per route, for the startup log."""
        lines = []
        for route in self.routes:
            pattern = f"/{route.path}*" if route.prefix else f"/{route.path}"
            lines.append(f"{pattern:<24} -> {route.name}")
        return "\n".join(lines)
