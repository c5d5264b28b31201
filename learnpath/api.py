from fastapi import FastAPI
from learnpath.goals.controller import router as goals_router
from learnpath.youtube.controller import router as youtube_router

def register_routes(app: FastAPI):
    app.include_router(goals_router)
    app.include_router(youtube_router)
