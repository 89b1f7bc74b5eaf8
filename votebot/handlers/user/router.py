# votebot/handlers/user/router.py
from aiogram import Router

from votebot.handlers.user.phase import router as phase_router
from votebot.handlers.user.submit import router as submit_router
from votebot.handlers.user.collections import router as collections_router
from votebot.handlers.user.winners import router as winners_router

router = Router(name="user")

router.include_router(phase_router)
router.include_router(submit_router)
router.include_router(collections_router)
router.include_router(winners_router)
