import os
from dotenv import load_dotenv

load_dotenv()

# Platform Fees
PLATFORM_FEE_PERCENT = int(os.getenv("PLATFORM_FEE_PERCENT", 15))

# Campaign Settings
MIN_CAMPAIGN_BUDGET = int(os.getenv("MIN_CAMPAIGN_BUDGET", 100))  # SAR
DEFAULT_CAMPAIGN_CITY = os.getenv("DEFAULT_CAMPAIGN_CITY", "الرياض")
ALGORITHM_VERSION = os.getenv("ALGORITHM_VERSION", "v2.0")

# Invitation Lifecycle
INVITATION_EXPIRY_HOURS = int(os.getenv("INVITATION_EXPIRY_HOURS", 48))
PROOF_AUTO_APPROVE_HOURS = int(os.getenv("PROOF_AUTO_APPROVE_HOURS", 24))

# Sweep Worker
EXPIRY_BATCH_SIZE = int(os.getenv("EXPIRY_BATCH_SIZE", 50))
SWEEP_INTERVAL_MINUTES = int(os.getenv("SWEEP_INTERVAL_MINUTES", 30))
