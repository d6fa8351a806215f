from fastapi import APIRouter

from . import auth, health, plans, purchases, sessions, stats, users

router = APIRouter(prefix="/api")
router.include_router(health.router)
router.include_router(auth.router)
router.include_router(users.router)
router.include_router(sessions.router)
router.include_router(plans.router)
router.include_router(purchases.router)
router.include_router(stats.router)
