import logging
from dataclasses import asdict
from typing import Optional

from fastapi import FastAPI, HTTPException, Depends, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .dependencies import get_workspace_service
from ..config import settings
from ..execution import queries
from ..services.exceptions import (
    NodeNotFoundError,
    NotAChildError,
    PersistenceFailure,
    SessionNotFoundError,
)
from ..services.workspace import Draft, WorkspaceService
from .schemas import (
    BackRequest,
    BreadcrumbRead,
    DiveRequest,
    DraftIn,
    GraphRead,
    JumpRequest,
    NavigationResponse,
    NodeEdit,
    NodeRead,
    OpenChildRequest,
    SessionSummaryRead,
    StatsRead,
    SwitchSession,
    WorkspaceRead,
)

logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(title="Recursive Stack")


@app.exception_handler(PersistenceFailure)
def persistence_failure_handler(request: Request, exc: PersistenceFailure):
    # The change is applied in memory but not stored yet.
    return JSONResponse(
        status_code=status.HTTP_507_INSUFFICIENT_STORAGE,
        content={"detail": str(exc)},
    )


# --- Helpers ---

def _draft(draft: Optional[DraftIn]) -> Optional[Draft]:
    if draft is None:
        return None
    return Draft(question=draft.question, answer=draft.answer)


def _workspace_view(service: WorkspaceService) -> WorkspaceRead:
    """
    We manually transform the state models into the API models.
    This keeps the stored record format independent from the public API.
    """
    session = service.current_session
    node = queries.current_node(session)
    stats = queries.session_stats(session)
    return WorkspaceRead(
        session_id=session.id,
        node=NodeRead(**node.model_dump()),
        path=list(session.path),
        breadcrumbs=[
            BreadcrumbRead(index=c.index, node_id=c.node_id, label=c.label, active=c.active)
            for c in queries.breadcrumbs(session)
        ],
        tokens=service.tokens(),
        resolved_children=[NodeRead(**child.model_dump()) for child in queries.resolved_children(session)],
        stats=StatsRead(
            node_count=stats.node_count,
            current_depth=stats.current_depth,
            max_depth_reached=stats.max_depth_reached,
            path_length=stats.path_length,
        ),
        can_go_back=len(session.path) > 1,
    )


def _navigation_response(service: WorkspaceService, transition) -> NavigationResponse:
    return NavigationResponse(transition=transition.name, workspace=_workspace_view(service))


# --- Sessions ---

@app.get("/sessions", response_model=list[SessionSummaryRead])
def list_sessions(service: WorkspaceService = Depends(get_workspace_service)):
    """Sessions, most recent first."""
    return [SessionSummaryRead(**asdict(summary)) for summary in service.list_sessions()]


@app.post("/sessions", response_model=WorkspaceRead, status_code=status.HTTP_201_CREATED)
def create_session(service: WorkspaceService = Depends(get_workspace_service)):
    """Starts a new session and makes it current."""
    service.create_session()
    return _workspace_view(service)


@app.put("/sessions/current", response_model=WorkspaceRead)
def switch_session(
    body: SwitchSession,
    service: WorkspaceService = Depends(get_workspace_service)
):
    try:
        service.switch_session(body.session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _workspace_view(service)


@app.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(
    session_id: str,
    service: WorkspaceService = Depends(get_workspace_service)
):
    """
    Deletes a session. Deleting the last one leaves a fresh empty session behind.
    """
    try:
        service.delete_session(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    # For 204, we must explicitly return a Response object with no content
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/sessions/{session_id}/reset", response_model=WorkspaceRead)
def reset_session(
    session_id: str,
    service: WorkspaceService = Depends(get_workspace_service)
):
    """Clears every question of a session and starts it over."""
    try:
        service.reset_session(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _workspace_view(service)


# --- Workspace (current session) ---

@app.get("/workspace", response_model=WorkspaceRead)
def get_workspace(service: WorkspaceService = Depends(get_workspace_service)):
    return _workspace_view(service)


@app.put("/workspace/node", response_model=WorkspaceRead)
def save_node(
    body: NodeEdit,
    service: WorkspaceService = Depends(get_workspace_service)
):
    service.save_node(body.question, body.answer)
    return _workspace_view(service)


@app.post("/workspace/dive", response_model=NavigationResponse)
def dive(
    body: DiveRequest,
    service: WorkspaceService = Depends(get_workspace_service)
):
    transition = service.dive(body.token, draft=_draft(body.draft))
    return _navigation_response(service, transition)


@app.post("/workspace/back", response_model=NavigationResponse)
def back(
    body: BackRequest,
    service: WorkspaceService = Depends(get_workspace_service)
):
    transition = service.back(draft=_draft(body.draft))
    return _navigation_response(service, transition)


@app.post("/workspace/jump", response_model=NavigationResponse)
def jump(
    body: JumpRequest,
    service: WorkspaceService = Depends(get_workspace_service)
):
    transition = service.jump(body.index, draft=_draft(body.draft))
    return _navigation_response(service, transition)


@app.post("/workspace/open", response_model=NavigationResponse)
def open_child(
    body: OpenChildRequest,
    service: WorkspaceService = Depends(get_workspace_service)
):
    try:
        transition = service.open_child(body.child_id, draft=_draft(body.draft))
    except NodeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NotAChildError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _navigation_response(service, transition)


@app.get("/workspace/outline", response_class=PlainTextResponse)
def outline(service: WorkspaceService = Depends(get_workspace_service)):
    return service.outline()


@app.get("/workspace/graph", response_model=GraphRead)
def graph(service: WorkspaceService = Depends(get_workspace_service)):
    nodes, edges = service.graph()
    return GraphRead(
        nodes=[NodeRead(**node.model_dump()) for node in nodes],
        edges=[[parent, child] for parent, child in edges],
    )
