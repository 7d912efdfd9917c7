from fastapi import APIRouter

from app.api.endpoints import (
    auth,
    content,
    exams,
    health,
    questions,
    subcategories,
    subscription,
    tutorial_skill,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(exams.router, prefix="/exams", tags=["Exams"])
api_router.include_router(
    subcategories.router, prefix="/subcategories", tags=["SubCategories"]
)
api_router.include_router(content.router, prefix="/content", tags=["Content"])
api_router.include_router(questions.router, prefix="/questions", tags=["Questions"])
api_router.include_router(
    subscription.router, prefix="/subscription", tags=["Subscription"]
)
api_router.include_router(
    tutorial_skill.router, prefix="/tutorial-skill", tags=["Tutorial Skill"]
)
