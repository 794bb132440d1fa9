from fastapi import APIRouter

from .decision import decision_router
from .ruleset import ruleset_router

router = APIRouter()

router.include_router(decision_router, tags=["Decisions"])
router.include_router(ruleset_router, tags=["Rulesets"])
