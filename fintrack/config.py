import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

STORAGE_KEY = "personal_finance_dashboard_state"

# Target savings ratio (percent of income) used by the savings-goal bar
SAVINGS_GOAL_RATIO = 30
NET_WORTH_HISTORY_LIMIT = 12
# A single expense category above this share of income gets called out
CONCENTRATION_THRESHOLD = 25
LOW_SAVINGS_RATIO = 20
HIGH_SAVINGS_RATIO = 40

HEALTH_WEIGHTS = {"savings": 0.5, "budget": 0.3, "stability": 0.2}

GOAL_CATEGORY = "Goals"
INVESTMENT_CATEGORY = "Investments"
CSV_COLUMNS = ["Date", "Category", "Amount", "Type", "Notes"]

CURRENCY = os.getenv("FINTRACK_CURRENCY", "₹")
DATA_DIR = Path(os.getenv("FINTRACK_DATA_DIR", Path(__file__).resolve().parent.parent / "data"))
STATE_FILE = DATA_DIR / "state.json"
SEED_FILE = DATA_DIR / "seed.json"
