"""
API v1 main router
Combines all v1 endpoint routers
"""

from fastapi import APIRouter

from app.api.v1.endpoints import health, questions, quizzes, responses

api_router = APIRouter()

api_router.include_router(health.router, tags=["Health"])
api_router.include_router(quizzes.router, prefix="/quizzes", tags=["Quizzes"])
api_router.include_router(questions.router, prefix="/questions", tags=["Questions"])
api_router.include_router(responses.router, prefix="/responses", tags=["Responses"])
