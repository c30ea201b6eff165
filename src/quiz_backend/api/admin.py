"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

if TYPE_CHECKING:
    from quiz_backend.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/sessions", dependencies=[Depends(require_admin)])
def list_sessions(request: Request) -> dict[str, object]:
    """Return sessions that have been admitted but not yet submitted."""
    container: AppContainer = request.app.state.container
    sessions = container.admission_controller.list_active_sessions()
    return {
        "sessions": [
            {
                "name": session.key.name,
                "batchId": session.key.batch_id,
                "startedAt": session.started_at.isoformat(),
            }
            for session in sessions
        ]
    }


@router.post("/sessions/sweep", dependencies=[Depends(require_admin)])
def sweep_sessions(request: Request) -> dict[str, int]:
    """Drop sessions whose batch window closed longer ago than the grace period."""
    container: AppContainer = request.app.state.container
    return {"removed": container.admission_controller.sweep_expired_sessions()}
