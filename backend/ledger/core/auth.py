from uuid import UUID

from fastapi import HTTPException, Request


def _parse_organization_header(request: Request) -> UUID | None:
    org_id_header = request.headers.get("X-Organization-Id")
    if not org_id_header:
        return None
    try:
        return UUID(org_id_header)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid X-Organization-Id header") from None


def get_current_organization(request: Request) -> UUID:
    """Return the organization scope resolved by the upstream tenancy layer.

    The gateway in front of this service authenticates the caller and forwards
    the organization it belongs to in the ``X-Organization-Id`` header.
    """
    organization_id = _parse_organization_header(request)
    if organization_id is None:
        raise HTTPException(status_code=400, detail="X-Organization-Id header is required")
    return organization_id


def get_optional_organization(request: Request) -> UUID | None:
    """Like ``get_current_organization`` but for commands that can derive the organization."""
    return _parse_organization_header(request)


def get_current_actor(request: Request) -> str:
    """Return the identity of the user performing a command (``X-Actor-Id``)."""
    actor_id = request.headers.get("X-Actor-Id", "").strip()
    if not actor_id:
        raise HTTPException(status_code=401, detail="Actor identity required")
    return actor_id
