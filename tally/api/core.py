"""Core endpoints — health, worker status, manual refresh."""

from __future__ import annotations

from fastapi import APIRouter

from tally import __version__
from tally.core.services import Services


def register_routes(router: APIRouter, svc: Services, **kw):
    store = svc.store
    refresh_worker = svc.refresh_worker
    listener = svc.signup_listener

    @router.get("/health")
    def api_health():
        return {"status": "ok", "version": __version__}

    @router.get("/status")
    def api_status():
        state = store.snapshot()
        return {
            "loading": state.loading,
            "raw_rows": len(state.views.raw),
            "hourly_points": len(state.views.hourly),
            "refreshed_at": state.refreshed_at.isoformat() if state.refreshed_at else None,
            "refresh_interval": svc.config.counter.refresh_interval,
            "live_updates": {
                "enabled": listener is not None,
                "received": listener.received if listener else 0,
                "applied": listener.applied if listener else 0,
            },
        }

    @router.post("/refresh")
    def api_refresh():
        """Run a refresh cycle now. Skipped if one is already in flight."""
        refreshed = refresh_worker.refresh_once()
        return {"refreshed": refreshed}
