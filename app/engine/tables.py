"""
Bout balance sheet - phase definitions, matchup matrices and stat effects.

All probabilities are decimals (0.5 = 50%). Matchup entries are keyed by
(east_choice, west_choice) and hold [east_win_chance, west_win_chance].
"""
from dataclasses import dataclass, field
from typing import Optional


PHASE_ORDER = ("salt", "display", "tachiai", "technique", "finish")

# Phases that produce a winner and count towards the match result
WINNER_PHASES = ("tachiai", "technique", "finish")

STAT_FIELDS = (
    "spirit",
    "focus",
    "intimidation",
    "crowd_support",
    "momentum",
    "positioning",
    "throw_power",
    "strike_power",
    "push_power",
    "balance",
)

BUILD_FIELDS = ("height", "weight", "speed", "technique")

# 30 seconds to pick a move before the phase auto-resolves
MOVE_SELECTION_TIMEOUT_MS = 30000


# ==========================================
# PHASE 1: SALT THROWING
# ==========================================
SALT_EFFECTS = {
    "little": {"focus": 2},
    "lots": {"spirit": 2},
}

# ==========================================
# PHASE 2: DISPLAY / INTIMIDATION
# ==========================================
DISPLAY_EFFECTS = {
    "mawashi": {"intimidation": 2},
    "aura": {"crowd_support": 2},
}

# ==========================================
# PHASE 3: TACHIAI (initial clash)
# ==========================================
TACHIAI_MATCHUPS = {
    ("hard", "hard"): (0.50, 0.50),
    ("hard", "soft"): (0.55, 0.45),
    ("hard", "henka"): (0.70, 0.30),  # Hard punishes henka

    ("soft", "hard"): (0.45, 0.55),
    ("soft", "soft"): (0.50, 0.50),
    ("soft", "henka"): (0.40, 0.60),  # Henka works better vs soft

    ("henka", "hard"): (0.30, 0.70),  # Shameful and usually fails
    ("henka", "soft"): (0.60, 0.40),
    ("henka", "henka"): (0.50, 0.50),
}

# Henka shame penalty, applied even if the henka wins
TACHIAI_EFFECTS = {
    "hard": {},
    "soft": {},
    "henka": {"crowd_support": -1, "spirit": -1},
}

TACHIAI_WIN_BONUS = {"momentum": 3, "positioning": 2}

# ==========================================
# PHASE 4: BATTLE TECHNIQUE
# ==========================================
TECHNIQUE_MATCHUPS = {
    ("grip", "grip"): (0.50, 0.50),
    ("grip", "tsuppari"): (0.40, 0.60),  # Can't grab with strikes incoming
    ("grip", "push"): (0.45, 0.55),
    ("grip", "pull"): (0.55, 0.45),

    ("tsuppari", "grip"): (0.60, 0.40),
    ("tsuppari", "tsuppari"): (0.50, 0.50),
    ("tsuppari", "push"): (0.55, 0.45),
    ("tsuppari", "pull"): (0.60, 0.40),

    ("push", "grip"): (0.55, 0.45),
    ("push", "tsuppari"): (0.45, 0.55),
    ("push", "push"): (0.50, 0.50),
    ("push", "pull"): (0.40, 0.60),

    ("pull", "grip"): (0.45, 0.55),
    ("pull", "tsuppari"): (0.40, 0.60),
    ("pull", "push"): (0.60, 0.40),
    ("pull", "pull"): (0.50, 0.50),
}

# Technique bonuses carried into the finish
TECHNIQUE_EFFECTS = {
    "grip": {"throw_power": 2},
    "tsuppari": {"strike_power": 2},
    "push": {"push_power": 2},
    "pull": {"balance": 2},
}

TECHNIQUE_WIN_BONUS = {"momentum": 2, "positioning": 1}

# ==========================================
# PHASE 5: FINISHING MOVE (kimarite)
# ==========================================
FINISH_BASE_RATE = 0.50

# How much each accumulated stat point moves the success chance
FINISH_STAT_MULTIPLIERS = {
    "spirit": 0.02,
    "focus": 0.025,
    "intimidation": 0.015,
    "crowd_support": 0.01,
    "momentum": 0.03,
    "positioning": 0.02,
    "throw_power": 0.02,
    "strike_power": 0.02,
    "push_power": 0.02,
    "balance": 0.015,
}

# Stats each finishing move leans on (extra weight per point)
FINISH_MOVE_STATS = {
    "yorikiri": ("throw_power", "push_power"),
    "oshidashi": ("push_power", "strike_power"),
    "uwatenage": ("throw_power", "balance"),
    "hatakikomi": ("balance", "strike_power"),
}
FINISH_MOVE_STAT_MULTIPLIER = 0.01

SIGNATURE_MOVE_BONUS = 0.15

# Character build contribution
BUILD_MULTIPLIERS = {"technique": 0.01, "speed": 0.005}

FINISH_MIN_CHANCE = 0.05
FINISH_MAX_CHANCE = 0.95


@dataclass(frozen=True)
class SignatureMove:
    """A preselected finishing technique and the technique it pairs with"""
    id: str
    name: str
    japanese: str
    description: str
    best_with: str
    affinity_bonus: float = 0.10


SIGNATURE_MOVES = {
    "yorikiri": SignatureMove("yorikiri", "Yorikiri", "寄り切り", "Force out while holding belt", "grip"),
    "oshidashi": SignatureMove("oshidashi", "Oshidashi", "押し出し", "Push out without belt grip", "push"),
    "hatakikomi": SignatureMove("hatakikomi", "Hatakikomi", "叩き込み", "Slap down technique", "pull"),
    "uwatenage": SignatureMove("uwatenage", "Uwatenage", "上手投げ", "Overarm throw", "grip"),
    "tsukiotoshi": SignatureMove("tsukiotoshi", "Tsukiotoshi", "突き落とし", "Thrust down", "tsuppari"),
    "kotenage": SignatureMove("kotenage", "Kotenage", "小手投げ", "Arm lock throw", "grip"),
    "hikiotoshi": SignatureMove("hikiotoshi", "Hikiotoshi", "引き落とし", "Pull down technique", "pull"),
    "sukuinage": SignatureMove("sukuinage", "Sukuinage", "掬い投げ", "Scoop throw", "grip"),
}


@dataclass(frozen=True)
class PhaseDefinition:
    name: str
    title: str
    description: str
    choices: tuple
    labels: dict
    has_winner: bool
    effects: dict = field(default_factory=dict)
    matchups: Optional[dict] = None
    win_bonus: dict = field(default_factory=dict)

    def is_valid(self, choice: str) -> bool:
        return choice in self.choices

    def matchup(self, east_choice: str, west_choice: str) -> tuple:
        if self.matchups is None:
            raise KeyError(f"Phase {self.name} has no matchup table")
        return self.matchups[(east_choice, west_choice)]


PHASE_TABLES = {
    "salt": PhaseDefinition(
        name="salt",
        title="Salt Ritual",
        description="Purify the ring and prepare your spirit",
        choices=("little", "lots"),
        labels={"little": "Little Salt", "lots": "Lots of Salt"},
        has_winner=False,
        effects=SALT_EFFECTS,
    ),
    "display": PhaseDefinition(
        name="display",
        title="Intimidation Display",
        description="Show your opponent your fighting spirit",
        choices=("mawashi", "aura"),
        labels={"mawashi": "Slap Mawashi", "aura": "Powerful Aura"},
        has_winner=False,
        effects=DISPLAY_EFFECTS,
    ),
    "tachiai": PhaseDefinition(
        name="tachiai",
        title="Tachiai!",
        description="The explosive initial charge",
        choices=("hard", "soft", "henka"),
        labels={"hard": "Hard Tachiai", "soft": "Soft Tachiai", "henka": "Henka (Sidestep)"},
        has_winner=True,
        effects=TACHIAI_EFFECTS,
        matchups=TACHIAI_MATCHUPS,
        win_bonus=TACHIAI_WIN_BONUS,
    ),
    "technique": PhaseDefinition(
        name="technique",
        title="Battle Technique",
        description="Execute your fighting technique",
        choices=("grip", "tsuppari", "push", "pull"),
        labels={
            "grip": "Belt Grip (Mawashi)",
            "tsuppari": "Tsuppari (Thrusts)",
            "push": "Oshi (Pushing)",
            "pull": "Hiki (Pulling)",
        },
        has_winner=True,
        effects=TECHNIQUE_EFFECTS,
        matchups=TECHNIQUE_MATCHUPS,
        win_bonus=TECHNIQUE_WIN_BONUS,
    ),
    "finish": PhaseDefinition(
        name="finish",
        title="Finishing Move!",
        description="Execute your winning technique",
        choices=("yorikiri", "oshidashi", "uwatenage", "hatakikomi"),
        labels={
            "yorikiri": "Yorikiri",
            "oshidashi": "Oshidashi",
            "uwatenage": "Uwatenage",
            "hatakikomi": "Hatakikomi",
        },
        has_winner=True,
    ),
}


ANNOUNCEMENTS = {
    "salt": {
        "little": "{name} throws a precise handful of salt!",
        "lots": "{name} hurls a mighty cloud of salt into the air!",
    },
    "display": {
        "mawashi": "{name} slaps their belt with thunderous force!",
        "aura": "{name} radiates an intimidating aura of calm!",
    },
    "tachiai": {
        "hard": "{name} explodes forward with a devastating charge!",
        "soft": "{name} absorbs the impact with perfect technique!",
        "henka": "{name} sidesteps with lightning reflexes!",
    },
    "technique": {
        "grip": "{name} secures a powerful grip on the belt!",
        "tsuppari": "{name} unleashes a flurry of palm strikes!",
        "push": "{name} drives forward with tremendous force!",
        "pull": "{name} pulls their opponent off balance!",
    },
    "finish": {
        "yorikiri": "{name} forces their opponent out with yorikiri!",
        "oshidashi": "{name} pushes out with oshidashi!",
        "uwatenage": "{name} executes a spectacular uwatenage throw!",
        "hatakikomi": "{name} slaps down with hatakikomi!",
    },
}

# Summary line per phase; competitive phases are keyed by winner presence
NARRATIVES = {
    "salt": "The dohyo is purified. Both rikishi are ready.",
    "display": "The psychological battle intensifies!",
    "tachiai": "{winner} wins the initial clash!",
    "technique": "{winner} establishes control!",
    "finish": "{winner} wins the bout!",
}
