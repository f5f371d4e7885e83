# uvote/routers/__init__.py
from .users.main import router as users_router
from .elections.main import router as elections_router
from .candidates.main import router as candidates_router
from .voting.main import router as voting_router
from .results.main import router as results_router
from .discussions.main import router as discussions_router

__all__ = [
    "users_router",
    "elections_router",
    "candidates_router",
    "voting_router",
    "results_router",
    "discussions_router",
]
