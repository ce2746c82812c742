# event_authz/api/rpc.py
from fastapi import FastAPI, HTTPException

from event_authz.api.models import EventReplyModel, EventRequestModel
from event_authz.engine import DecisionEngine
from event_authz.errors import DecisionError
from event_authz.logger import get_logger

log = get_logger("event_authz.api.rpc")


def create_rpc_app(engine: DecisionEngine) -> FastAPI:
    app = FastAPI(title="event_authz decision RPC")
    app.state.engine = engine

    @app.post("/event_admit", response_model=EventReplyModel)
    def event_admit(req: EventRequestModel):
        try:
            reply = engine.event_admit(req.to_request())
        except DecisionError as e:
            # a failure to decide is not a verdict
            raise HTTPException(500, f"cannot decide: {e}")
        return reply.to_dict()

    return app
