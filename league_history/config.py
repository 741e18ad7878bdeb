import os

API_URL = os.getenv("SLEEPER_API_URL", "https://api.sleeper.app/v1")
FANTASYCALC_URL = os.getenv("FANTASYCALC_API_URL", "https://api.fantasycalc.com/values/current")
REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# How many seasons back to look for a user's leagues
HISTORY_SEASONS = int(os.getenv("HISTORY_SEASONS", "10"))
MAX_WEEKS = 18
DEFAULT_PLAYOFF_WEEK_START = 15

# ---- Records ----
BLOWOUT_MARGIN = 30.0
BLOWOUT_LIST_SIZE = 5

# ---- Luck ----
LUCK_MIN_MANAGERS = 4

# ---- Power rankings ----
# Weekly scores are divided by POWER_POINTS_SCALE before weighting
POWER_RECENT_WEEKS = 3
POWER_RECENT_WEIGHT = 0.5
POWER_SEASON_WEIGHT = 0.3
POWER_WIN_PCT_WEIGHT = 0.2
POWER_POINTS_SCALE = 200.0

# ---- Trade grading ----
# Blend weights must stay non-negative so the score is monotonic in both inputs.
TRADE_WIN_RATE_WEIGHT = 0.5
TRADE_NET_VALUE_WEIGHT = 0.5
TRADE_NET_VALUE_SCALE = 5000.0

# ---- Draft grading ----
DRAFT_HIT_SURPLUS = 25.0
DRAFT_BUST_SURPLUS = -25.0
DRAFT_HIT_RATE_WEIGHT = 0.4
DRAFT_SURPLUS_WEIGHT = 0.6
DRAFT_SURPLUS_SCALE = 150.0

# ---- Pick valuation (FantasyCalc units) ----
PICK_ROUND_VALUE = {1: 5000.0, 2: 2500.0, 3: 800.0, 4: 300.0}
PICK_DEFAULT_VALUE = 100.0
# First slot in a round is worth (1 + spread) of the round value, last slot (1 - spread)
PICK_SLOT_SPREAD = 0.2
DEFAULT_LEAGUE_SIZE = 12

# ---- Trajectory ----
ROLLING_WAR_WEEKS = 17

# ---- Outlook ----
SKILL_POSITIONS = ("QB", "RB", "WR", "TE")
PROJECTION_YEARS = 3
PICK_WAR_BY_ROUND = {1: 4.0, 2: 2.0, 3: 0.8, 4: 0.3}
PICK_WAR_DEFAULT = 0.1
PICK_WAR_DISCOUNT = 0.85
AGE_MULTIPLIER_FLOOR = 0.4
DEFAULT_TEAM_AGE = 26.0
AGE_CURVES = {
    "QB": {
        22: 0.75, 23: 0.85, 24: 0.92, 25: 0.97, 26: 1.00, 27: 1.02,
        28: 1.02, 29: 1.01, 30: 1.00, 31: 0.98, 32: 0.95, 33: 0.92,
        34: 0.88, 35: 0.82, 36: 0.75, 37: 0.68, 38: 0.60, 39: 0.50,
    },
    "RB": {
        21: 0.85, 22: 0.95, 23: 1.02, 24: 1.05, 25: 1.00, 26: 0.88,
        27: 0.75, 28: 0.60, 29: 0.45, 30: 0.35, 31: 0.25,
    },
    "WR": {
        21: 0.75, 22: 0.88, 23: 0.95, 24: 1.00, 25: 1.03, 26: 1.05,
        27: 1.04, 28: 1.02, 29: 0.98, 30: 0.94, 31: 0.88, 32: 0.80,
        33: 0.72, 34: 0.63,
    },
    "TE": {
        22: 0.70, 23: 0.82, 24: 0.92, 25: 1.00, 26: 1.05, 27: 1.07,
        28: 1.05, 29: 1.02, 30: 0.98, 31: 0.93, 32: 0.87, 33: 0.80,
        34: 0.72, 35: 0.63,
    },
}
# Focus-area signals: position groups older than this and under league average need investment
FOCUS_AGING_AGE = 28
FOCUS_YOUNG_AGE = 25
# Year-two projection below this share of current WAR marks a short window
SHORT_WINDOW_RATIO = 0.85
# |wins rank - WAR rank| at which the record is called lucky or unlucky
OUTLOOK_LUCK_SIGNAL = 3
KEY_PLAYER_COUNT = 5
ROOKIE_TARGET_LIMIT = 5
# Rookies older than this position-group age make the position a draft need
ROOKIE_NEED_AGE = 27
TRADE_TARGET_LIMIT = 6
TRADE_TARGETS_PER_OWNER = 2
TRADE_TARGET_PICKS_PER_TEAM = 2
# Picks rank below proven players of the same nominal value
TRADE_TARGET_PICK_WEIGHT = 0.6
