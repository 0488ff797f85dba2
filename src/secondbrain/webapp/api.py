"""REST API for the second brain viewer."""

import logging
import os
from pathlib import Path
from typing import Any, NoReturn

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ..brain import Brain
from ..config import (
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    DEFAULT_LAYOUT_STEPS,
    DEFAULT_SEARCH_LIMIT,
    MAX_LAYOUT_STEPS,
    MAX_SEARCH_LIMIT,
    get_brain_root,
)
from ..filestore import (
    FileStore,
    FileStoreError,
    InvalidNoteError,
    InvalidPathError,
    NoteExistsError,
    NoteNotFoundError,
)
from ..layout import Canvas, Springs, run_layout, seed_layout
from ..models import BrainExport, BrokenLink, Edge, FileContent, FileInfo, SearchHit, TreeNode
from ..parser import render_markdown
from ..search import NoteSearcher

log = logging.getLogger(__name__)


# Response models
class FilesResponse(BaseModel):
    """All markdown files in the brain."""
    files: list[FileInfo]
    brain_path: str


class WriteRequest(BaseModel):
    """Body for saving a file."""
    content: str = ""
    frontmatter: dict[str, Any] = Field(default_factory=dict)


class CreateRequest(WriteRequest):
    """Body for creating a file."""
    path: str


class WriteResponse(BaseModel):
    success: bool
    path: str


class NoteResponse(BaseModel):
    """A note with rendered HTML and link status."""
    id: str
    title: str
    relative_path: str
    content: str
    content_html: str
    tags: list[str]
    wiki_links: list[str]
    broken_links: list[str]
    outbound: list[str]
    backlinks: list[str]
    frontmatter: dict[str, Any]


class GraphNodeResponse(BaseModel):
    """Node in the knowledge graph, at its seeded position."""
    id: str
    title: str
    degree: int
    x: float
    y: float
    tags: list[str] = []


class GraphResponse(BaseModel):
    """Full graph data."""
    nodes: list[GraphNodeResponse]
    edges: list[Edge]
    broken_links: list[BrokenLink]


class LayoutNodeResponse(BaseModel):
    id: str
    x: float
    y: float
    vx: float
    vy: float
    degree: int


class LayoutResponse(BaseModel):
    """Node positions after running the layout headlessly."""
    width: float
    height: float
    steps: int
    nodes: list[LayoutNodeResponse]
    edges: list[Edge]


class SearchResponse(BaseModel):
    results: list[SearchHit]
    total: int


class AppState:
    """Per-app context: the brain, its file store and search index."""

    def __init__(self, brain: Brain) -> None:
        self.brain = brain
        self.files = FileStore(brain.root, brain.settings.excluded_dirs)
        self._searcher: NoteSearcher | None = None

    def rebuild(self) -> None:
        """Full rebuild after any write; the search index is rebuilt lazily."""
        self.brain.rebuild()
        self._searcher = None

    @property
    def searcher(self) -> NoteSearcher:
        if self._searcher is None:
            self._searcher = NoteSearcher.from_graph(self.brain.graph)
        return self._searcher


def _state(request: Request) -> AppState:
    return request.app.state.brain_state


def _raise_http(error: FileStoreError) -> NoReturn:
    if isinstance(error, NoteNotFoundError):
        raise HTTPException(status_code=404, detail=error.message) from error
    if isinstance(error, NoteExistsError):
        raise HTTPException(status_code=409, detail=error.message) from error
    if isinstance(error, InvalidPathError):
        raise HTTPException(status_code=400, detail=error.message) from error
    if isinstance(error, InvalidNoteError):
        raise HTTPException(status_code=422, detail=error.message) from error
    raise HTTPException(status_code=500, detail=str(error)) from error


def create_app(brain_root: Path | None = None, brain: Brain | None = None) -> FastAPI:
    """Create the API app for one brain folder.

    Args:
        brain_root: Notes directory; discovered from configuration when omitted.
        brain: An already constructed Brain (takes precedence over brain_root).
    """
    brain = brain or Brain(brain_root or get_brain_root())

    app = FastAPI(
        title="Second Brain",
        description="Markdown notes as a browsable, linked knowledge graph",
        version="1.0.0",
    )

    # CORS for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.brain_state = AppState(brain)

    # API Routes

    @app.get("/api/files", response_model=FilesResponse)
    async def list_files(request: Request):
        """List all markdown files."""
        state = _state(request)
        return FilesResponse(files=state.files.list_files(), brain_path=str(state.brain.root))

    @app.get("/api/file/{path:path}", response_model=FileContent)
    async def get_file(path: str, request: Request):
        """Read a single file."""
        try:
            return _state(request).files.read_file(path)
        except FileStoreError as e:
            _raise_http(e)

    @app.put("/api/file/{path:path}", response_model=WriteResponse)
    async def save_file(path: str, body: WriteRequest, request: Request):
        """Save (create or overwrite) a file, then rebuild the graph."""
        state = _state(request)
        try:
            state.files.save_file(path, body.content, body.frontmatter)
        except FileStoreError as e:
            _raise_http(e)
        state.rebuild()
        return WriteResponse(success=True, path=path)

    @app.post("/api/file", response_model=WriteResponse)
    async def create_file(body: CreateRequest, request: Request):
        """Create a new file, then rebuild the graph."""
        state = _state(request)
        try:
            state.files.create_file(body.path, body.content, body.frontmatter)
        except FileStoreError as e:
            _raise_http(e)
        state.rebuild()
        return WriteResponse(success=True, path=body.path)

    @app.delete("/api/file/{path:path}", response_model=WriteResponse)
    async def delete_file(path: str, request: Request):
        """Delete a file, then rebuild the graph."""
        state = _state(request)
        try:
            state.files.delete_file(path)
        except FileStoreError as e:
            _raise_http(e)
        state.rebuild()
        return WriteResponse(success=True, path=path)

    @app.post("/api/rebuild")
    async def rebuild(request: Request):
        """Re-read every note from disk."""
        state = _state(request)
        state.rebuild()
        graph = state.brain.graph
        return {"notes": len(graph), "edges": len(graph.edges), "broken_links": len(graph.broken_links)}

    @app.get("/api/brain", response_model=BrainExport)
    async def get_brain(request: Request):
        """The whole brain in brain.json form."""
        return _state(request).brain.export()

    @app.get("/api/tree", response_model=TreeNode)
    async def get_tree(request: Request):
        """Get the folder tree."""
        return _state(request).brain.tree

    @app.get("/api/notes/{note_id}", response_model=NoteResponse)
    async def get_note(note_id: str, request: Request):
        """Get a single note with rendered HTML."""
        graph = _state(request).brain.graph
        note = graph.get(note_id)
        if note is None:
            raise HTTPException(status_code=404, detail=f"Note not found: {note_id}")

        rendered = render_markdown(note.content, graph.alias_index)
        return NoteResponse(
            id=note.id,
            title=note.title,
            relative_path=note.relative_path,
            content=note.content,
            content_html=rendered.html,
            tags=list(note.tags),
            wiki_links=list(note.wiki_links),
            broken_links=graph.broken_links_for(note.id),
            outbound=graph.outbound(note.id),
            backlinks=list(note.backlinks),
            frontmatter=note.frontmatter.to_dict(),
        )

    @app.get("/api/graph", response_model=GraphResponse)
    async def get_graph(
        request: Request,
        width: float = Query(DEFAULT_CANVAS_WIDTH, gt=0),
        height: float = Query(DEFAULT_CANVAS_HEIGHT, gt=0),
    ):
        """Get the full knowledge graph with seeded node positions."""
        graph = _state(request).brain.graph
        layout = seed_layout(graph.ids(), Canvas(width=width, height=height), graph.degrees())

        nodes = []
        for node in layout.nodes:
            note = graph.get(node.id)
            nodes.append(
                GraphNodeResponse(
                    id=node.id,
                    title=note.title,
                    degree=node.degree,
                    x=node.x,
                    y=node.y,
                    tags=list(note.tags),
                )
            )

        return GraphResponse(nodes=nodes, edges=list(graph.edges), broken_links=list(graph.broken_links))

    @app.get("/api/layout", response_model=LayoutResponse)
    async def get_layout(
        request: Request,
        steps: int = Query(DEFAULT_LAYOUT_STEPS, ge=0, le=MAX_LAYOUT_STEPS),
        width: float = Query(DEFAULT_CANVAS_WIDTH, gt=0),
        height: float = Query(DEFAULT_CANVAS_HEIGHT, gt=0),
    ):
        """Run the force layout headlessly and return final positions."""
        brain = _state(request).brain
        graph = brain.graph
        state = seed_layout(graph.ids(), Canvas(width=width, height=height), graph.degrees())
        state = run_layout(state, Springs.from_edges(state, graph.edges), steps, brain.forces)

        return LayoutResponse(
            width=width,
            height=height,
            steps=steps,
            nodes=[
                LayoutNodeResponse(id=n.id, x=n.x, y=n.y, vx=n.vx, vy=n.vy, degree=n.degree)
                for n in state.nodes
            ],
            edges=list(graph.edges),
        )

    @app.get("/api/search", response_model=SearchResponse)
    async def search(
        request: Request,
        q: str = Query(..., min_length=1, description="Search query"),
        limit: int = Query(DEFAULT_SEARCH_LIMIT, ge=1, le=MAX_SEARCH_LIMIT),
    ):
        """Search note titles, content and tags."""
        results = _state(request).searcher.search(q, limit=limit)
        return SearchResponse(results=results, total=len(results))

    @app.get("/")
    async def root():
        return {"message": "Second Brain API", "docs": "/docs"}

    return app


def main():
    """Run the API server."""
    import uvicorn

    host = os.environ.get("HOST", "127.0.0.1")
    port = int(os.environ.get("PORT", "3001"))

    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    main()
