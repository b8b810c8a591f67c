"""API credentials."""

from dataclasses import dataclass


@dataclass
class Credentials:
    """Opaque credential pair for the geocoding and routing APIs."""

    app_id: str
    api_key: str

    def __repr__(self) -> str:
        return f"Credentials(app_id={self.app_id!r}, api_key='***')"
