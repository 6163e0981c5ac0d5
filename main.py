import argparse
import time
import schedule
import logging
import sys
from database.config import SessionLocal
from services.sweeper import expire_pending_invitations, auto_approve_proofs
from config.app_config import SWEEP_INTERVAL_MINUTES, EXPIRY_BATCH_SIZE

# Configure Logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler("sweep_worker.log")
    ]
)

def run_sweep_cycle(batch_size: int = EXPIRY_BATCH_SIZE):
    logging.info("Starting Sweep Cycle...")
    db = SessionLocal()
    try:
        expired = expire_pending_invitations(db, batch_size=batch_size)
        approved = auto_approve_proofs(db, batch_size=batch_size)
        logging.info(f"Cycle Complete. {expired.successful} invitations expired, "
                     f"{approved.successful} proofs auto-approved, "
                     f"{expired.errors + approved.errors} errors.")
    except Exception as e:
        logging.error(f"Error in sweep cycle: {e}")
    finally:
        db.close()

def start_scheduler(batch_size: int = EXPIRY_BATCH_SIZE):
    logging.info(f"Starting Sweep Scheduler (Every {SWEEP_INTERVAL_MINUTES} Minutes)...")
    # Run once immediately
    run_sweep_cycle(batch_size)

    schedule.every(SWEEP_INTERVAL_MINUTES).minutes.do(run_sweep_cycle, batch_size)

    while True:
        schedule.run_pending()
        time.sleep(60)

def main():
    parser = argparse.ArgumentParser(description="Ziyara Sweep Worker")
    parser.add_argument("--mode", choices=["once", "schedule"], default="schedule", help="Run once or schedule")
    parser.add_argument("--batch-size", type=int, default=EXPIRY_BATCH_SIZE, help="Rows per sweep run")
    args = parser.parse_args()

    if args.mode == "schedule":
        start_scheduler(args.batch_size)
    else:
        run_sweep_cycle(args.batch_size)

if __name__ == "__main__":
    main()
