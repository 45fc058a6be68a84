from __future__ import annotations


class OverpassError(Exception):
    """Base class for failures talking to the Overpass API."""


class OverpassTransportError(OverpassError):
    """Connection problems and client-side timeouts."""


class OverpassStatusError(OverpassError):
    def __init__(self, status_code: int):
        super().__init__(f"Overpass API failed: {status_code}")
        self.status_code = status_code


class OverpassResponseError(OverpassError):
    """The response body is not an Overpass JSON document."""
