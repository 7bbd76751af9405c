import logging
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from referral_service.referrals.router import router as referrals_router

logging.basicConfig(level=logging.INFO)

app = FastAPI(title="Referral Service")

app.include_router(referrals_router)


@app.get("/health")
def health():
    return {"status": "ok"}
