"""
CPU opponent decisions.
Simple rule tables over accumulated stats and the wrestler build; always
returns a valid choice for the phase.
"""
import random
from typing import Optional

from app.engine.resolver import Side
from app.engine.tables import PHASE_TABLES

# Lead (or deficit) in spirit+focus that makes the CPU commit at the tachiai
TACHIAI_CONFIDENCE_MARGIN = 2

# Build attribute above which the CPU plays to that strength
STYLE_THRESHOLD = 6


def choose_salt(rng: random.Random) -> str:
    # Prefer the dramatic throw for the spirit boost
    return "lots" if rng.random() > 0.4 else "little"


def choose_display(stats, rng: random.Random) -> str:
    if stats.spirit > stats.focus:
        return "aura"
    return "mawashi" if rng.random() > 0.5 else "aura"


def choose_tachiai(own_stats, opponent_stats, rng: random.Random) -> str:
    mine = own_stats.confidence
    theirs = opponent_stats.confidence

    if mine > theirs + TACHIAI_CONFIDENCE_MARGIN:
        return "hard"
    if theirs > mine + TACHIAI_CONFIDENCE_MARGIN:
        return "soft"

    roll = rng.random()
    if roll < 0.4:
        return "hard"
    if roll < 0.7:
        return "soft"
    return "henka"


def choose_technique(participant, stats, rng: random.Random) -> str:
    """Play to the wrestler's strongest attribute, else react to momentum"""
    if (getattr(participant, "technique", 0) or 0) > STYLE_THRESHOLD:
        return "grip" if rng.random() > 0.3 else "pull"
    if (getattr(participant, "weight", 0) or 0) > STYLE_THRESHOLD:
        return "push" if rng.random() > 0.3 else "grip"
    if (getattr(participant, "speed", 0) or 0) > STYLE_THRESHOLD:
        return "tsuppari" if rng.random() > 0.3 else "pull"

    if stats.momentum > 0:
        return "push"  # keep the pressure on
    return "pull"  # try to reset


def choose_finish(participant, stats) -> str:
    signature = getattr(participant, "signature_move", None)
    if signature and PHASE_TABLES["finish"].is_valid(signature):
        return signature

    if stats.throw_power >= stats.push_power:
        return "uwatenage" if stats.balance > stats.push_power else "yorikiri"
    return "oshidashi" if stats.strike_power > stats.balance else "hatakikomi"


def choose_for_phase(phase: str, match, side: Side, rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()
    own = match.stats[side]
    participant = match.participant(side)

    if phase == "salt":
        return choose_salt(rng)
    if phase == "display":
        return choose_display(own, rng)
    if phase == "tachiai":
        return choose_tachiai(own, match.stats[side.opponent], rng)
    if phase == "technique":
        return choose_technique(participant, own, rng)
    if phase == "finish":
        return choose_finish(participant, own)

    return rng.choice(PHASE_TABLES[phase].choices)
