"""
Control HTTP API.

Operators bulk admit/deny identities and list both sets. Every directory
route requires the X-Api-Key header to match the configured key exactly;
a missing or wrong key is rejected before the directory is touched.
"""

import hmac
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException

from event_authz.api.models import UpdateResult, Users
from event_authz.directory.guarded import GuardedDirectory
from event_authz.errors import DirectoryError
from event_authz.logger import get_logger

log = get_logger("event_authz.api.control")


def create_control_app(directory: GuardedDirectory, api_key: str) -> FastAPI:
    if not api_key:
        raise ValueError("control API requires an api key")

    app = FastAPI(title="event_authz control API")
    app.state.directory = directory

    def require_key(x_api_key: Optional[str] = Header(default=None)) -> None:
        if x_api_key is None:
            raise HTTPException(401, "No Api Key")
        if not hmac.compare_digest(x_api_key.encode("utf-8"), api_key.encode("utf-8")):
            log.warning("control API call with invalid key")
            raise HTTPException(401, "Invalid API Key")

    @app.post("/update", response_model=UpdateResult, dependencies=[Depends(require_key)])
    def update_users(payload: Users):
        result = UpdateResult()
        try:
            if payload.allow:
                log.debug(f"Pubkeys to allow: {payload.allow}")
                admitted = directory.admit(payload.allow)
                result.allowed = sorted(admitted.applied)
                result.rejected.extend(str(r) for r in admitted.rejected)
            if payload.deny:
                log.debug(f"Pubkeys to deny: {payload.deny}")
                denied = directory.deny(payload.deny)
                result.denied = sorted(denied.applied)
                result.rejected.extend(str(r) for r in denied.rejected)
        except DirectoryError as e:
            log.error(f"update failed: {e}")
            raise HTTPException(502, f"directory update failed: {e}")
        return result

    @app.get("/users", response_model=Users, dependencies=[Depends(require_key)])
    def get_users():
        try:
            return directory.snapshot().to_dict()
        except DirectoryError as e:
            raise HTTPException(502, f"directory read failed: {e}")

    @app.get("/healthz")
    def healthz():
        return {"status": "ok", "directory": directory.readyz()}

    return app
