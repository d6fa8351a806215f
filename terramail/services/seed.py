"""Default admin account and plan catalogue for a fresh store."""
from __future__ import annotations

import logging

from terramail.config import Settings
from terramail.services import accounts, plans
from terramail.store import Store

logger = logging.getLogger(__name__)

ADMIN_SUBSCRIPTION_DAYS = 9999

DEFAULT_PLANS = (
    {
        "name": "Plano Básico",
        "days": 30,
        "price": 29.90,
        "description": "Ideal para iniciantes com recursos essenciais",
    },
    {
        "name": "Plano Standard",
        "days": 90,
        "price": 79.90,
        "description": "Perfeito para uso regular com recursos avançados",
    },
    {
        "name": "Plano Premium",
        "days": 180,
        "price": 149.90,
        "description": "Para usuários intensivos com máxima performance",
    },
    {
        "name": "Plano Ultimate",
        "days": 365,
        "price": 299.90,
        "description": "Acesso completo por um ano inteiro",
    },
)


def seed_defaults(store: Store, cfg: Settings) -> None:
    """Create the admin account and default plans when they are missing."""
    email = accounts.normalize_email(cfg.admin_email)
    if store.get_user_by_email(email) is None:
        accounts.create_account(
            store,
            email=email,
            password=cfg.admin_password,
            role="admin",
            subscription_days=ADMIN_SUBSCRIPTION_DAYS,
        )
        logger.info("seeded admin account %s", email)

    if not store.list_plans(active_only=False):
        for fields in DEFAULT_PLANS:
            plans.create_plan(store, **fields)
        logger.info("seeded %d default plans", len(DEFAULT_PLANS))


__all__ = ["DEFAULT_PLANS", "ADMIN_SUBSCRIPTION_DAYS", "seed_defaults"]
