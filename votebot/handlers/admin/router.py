# votebot/handlers/admin/router.py
from aiogram import Router

from votebot.handlers.admin.phase_admin import router as phase_admin_router
from votebot.handlers.admin.winners_admin import router as winners_admin_router
from votebot.handlers.admin.data_admin import router as data_admin_router
from votebot.handlers.admin.block_admin import router as block_admin_router
from votebot.handlers.admin.audit import router as audit_router

router = Router(name="admin")

router.include_router(phase_admin_router)
router.include_router(winners_admin_router)
router.include_router(data_admin_router)
router.include_router(block_admin_router)
router.include_router(audit_router)
