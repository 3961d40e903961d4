"""
Lifespan FastAPI de la boutique.
- Configuration obligatoire vérifiée avant tout (Supabase, Stripe, frais de port): absence = arrêt.
- Limiteur de débit (fastapi-limiter sur Redis), avec les interrupteurs de test:
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: aucune initialisation, limitation coupée
  - USE_FAKE_REDIS_FOR_TESTS=1: fakeredis à la place de Redis
  - LOCAL_RATE_LIMIT_FALLBACK=1: compteur mémoire si Redis est injoignable
"""
import os
import logging
import redis.asyncio as aioredis
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter
from storefront import config

logger = logging.getLogger("uvicorn.error")

async def _init_rate_limit(app: FastAPI) -> None:
    # Redis indisponible au démarrage: on démarre quand même, sans limitation (ou en mémoire)
    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        app.state.rate_limit_enabled = False
        logger.info("rate_limit.disabled reason=test_flag")
        return
    try:
        if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
            from fakeredis.aioredis import FakeRedis  # tests only
            r = FakeRedis(decode_responses=True)
        else:
            redis_url = os.getenv("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0")
            r = aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)
        await FastAPILimiter.init(r)
        app.state.rate_limit_enabled = True
        logger.info("rate_limit.enabled backend=redis")
    except Exception as e:
        app.state.rate_limit_enabled = os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1"
        if app.state.rate_limit_enabled:
            logger.warning("rate_limit.fallback backend=memory error=%s", e)
        else:
            logger.warning("rate_limit.disabled error=%s", e)

@asynccontextmanager
async def lifespan(app: FastAPI):
    config.require_settings()
    logger.info(
        "storefront.startup base_url=%s currency=%s free_shipping_threshold=%s",
        config.BASE_URL, config.STRIPE_CURRENCY, config.FREE_SHIPPING_THRESHOLD_CENTS,
    )
    await _init_rate_limit(app)
    yield
    if getattr(app.state, "rate_limit_enabled", False) and FastAPILimiter.redis is not None:
        await FastAPILimiter.close()
