# FastAPI Server for the Ziyara Marketplace

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os
import sys
from dotenv import load_dotenv

from database.config import init_db, SessionLocal
from database.models import User, UserType
from config.app_config import SWEEP_INTERVAL_MINUTES
from routers import (
    campaigns_router,
    influencers_router,
    invitations_router,
    proof_of_work_router,
    notifications_router,
    admin_router,
)

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)

app = FastAPI(
    title="Ziyara API",
    description="Restaurant and cafe influencer marketplace API",
    version="1.0.0"
)


def seed_admin():
    """Create the admin account named by ADMIN_EMAIL if it does not exist."""
    admin_email = os.getenv("ADMIN_EMAIL")
    if not admin_email:
        return

    db = SessionLocal()
    try:
        if not db.query(User).filter(User.email == admin_email).first():
            logging.info(f"🌱 Seeding Admin User: {admin_email}")
            db.add(User(email=admin_email, name="Ziyara Admin", user_type=UserType.ADMIN))
            db.commit()
    except Exception as e:
        logging.error(f"⚠️ Seeding failed: {e}")
        db.rollback()
    finally:
        db.close()


def start_sweep_scheduler():
    """Run both timeout sweeps in-process. Off unless ENABLE_SWEEP_SCHEDULER is set."""
    from apscheduler.schedulers.background import BackgroundScheduler
    from main import run_sweep_cycle

    scheduler = BackgroundScheduler()
    scheduler.add_job(run_sweep_cycle, 'interval', minutes=SWEEP_INTERVAL_MINUTES)
    scheduler.start()
    logging.info(f"✅ Scheduler started: sweeps will run every {SWEEP_INTERVAL_MINUTES} minutes.")
    return scheduler


@app.on_event("startup")
def startup_event():
    init_db()
    seed_admin()

    if os.getenv("ENABLE_SWEEP_SCHEDULER", "false").lower() == "true":
        start_sweep_scheduler()


# CORS Setup - Allow all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Required when using "*"
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# MARKETPLACE ROUTERS
# ============================================================================
app.include_router(campaigns_router, prefix="/api")
app.include_router(influencers_router, prefix="/api")
app.include_router(invitations_router, prefix="/api")
app.include_router(proof_of_work_router, prefix="/api")
app.include_router(notifications_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


@app.get("/")
def root():
    return {
        "name": "Ziyara API",
        "version": "1.0.0",
        "status": "running"
    }

@app.get("/health")
def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
