from referral_chains.routes.chains import router as chains_router

__all__ = ["chains_router"]
