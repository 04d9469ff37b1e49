"""
CPU Generator - fills the tournament field with rikishi from the real roster
"""
import random
import time
from typing import Optional
from faker import Faker

from app.models.participant import Participant

fake = Faker("ja_JP")

# Makuuchi wrestlers with their fighting style and favourite kimarite
ROSTER = [
    {"id": 1, "name": "Hoshoryu", "rank": "Yokozuna", "style": "technical", "signature_move": "uwatenage"},
    {"id": 2, "name": "Onosato", "rank": "Yokozuna", "style": "power", "signature_move": "oshidashi"},
    {"id": 3, "name": "Kotozakura", "rank": "Ozeki", "style": "power", "signature_move": "yorikiri"},
    {"id": 4, "name": "Aonishiki", "rank": "Ozeki", "style": "power", "signature_move": "yorikiri"},
    {"id": 5, "name": "Kirishima", "rank": "Sekiwake", "style": "technical", "signature_move": "yorikiri"},
    {"id": 6, "name": "Takayasu", "rank": "Sekiwake", "style": "power", "signature_move": "oshidashi"},
    {"id": 7, "name": "Oho", "rank": "Komusubi", "style": "power", "signature_move": "oshidashi"},
    {"id": 8, "name": "Wakamotoharu", "rank": "Komusubi", "style": "technical", "signature_move": "yorikiri"},
    {"id": 9, "name": "Ichiyamamoto", "rank": "Maegashira 1", "style": "speed", "signature_move": "oshidashi"},
    {"id": 10, "name": "Yoshinofuji", "rank": "Maegashira 1", "style": "technical", "signature_move": "yorikiri"},
    {"id": 11, "name": "Ura", "rank": "Maegashira 2", "style": "speed", "signature_move": "hatakikomi"},
    {"id": 12, "name": "Shodai", "rank": "Maegashira 2", "style": "technical", "signature_move": "yorikiri"},
]

# Shikona endings used when the roster runs out
SHIKONA_SUFFIXES = ["yama", "umi", "fuji", "ryu", "nishiki", "zakura", "sho"]


class CpuGenerator:
    """Creates CPU participants with fixed-total (20 point) builds"""

    @staticmethod
    def generate_build(style: Optional[str]) -> dict:
        """Balanced 5/5/5/5 build, shifted two points towards the wrestler's style"""
        stats = {"height": 5, "weight": 5, "speed": 5, "technique": 5}
        if style == "power":
            stats["weight"] = 7
            stats["technique"] = 3
        elif style == "technical":
            stats["technique"] = 7
            stats["weight"] = 3
        elif style == "speed":
            stats["speed"] = 7
            stats["height"] = 3
        return stats

    @staticmethod
    def pick_wrestler(used_ids: set, index: int, rng: random.Random) -> dict:
        for wrestler in ROSTER:
            if wrestler["id"] not in used_ids:
                return wrestler

        # Roster exhausted - invent a rikishi
        name = fake.last_romanized_name().capitalize() + rng.choice(SHIKONA_SUFFIXES)
        return {
            "id": None,
            "name": name,
            "rank": "Juryo",
            "style": rng.choice(["power", "technical", "speed"]),
            "signature_move": None,
        }

    @classmethod
    def create_cpu_participant(cls, index: int, used_ids: set, rng: Optional[random.Random] = None) -> Participant:
        rng = rng or random.Random()
        wrestler = cls.pick_wrestler(used_ids, index, rng)
        return cls.from_roster(wrestler, index, rng)

    @classmethod
    def from_roster(cls, wrestler: dict, index: int, rng: Optional[random.Random] = None) -> Participant:
        """CPU participant for a roster entry (not added to any session)"""
        rng = rng or random.Random()
        stats = cls.generate_build(wrestler["style"])
        signature = wrestler["signature_move"] or rng.choice(["yorikiri", "oshidashi", "uwatenage", "hatakikomi"])

        return Participant(
            email=f"cpu_{index}_{int(time.time() * 1000)}@cpu.local",
            player_name=f"CPU {wrestler['name']}",
            display_name=wrestler["name"],
            wrestler_id=wrestler["id"],
            signature_move=signature,
            is_cpu=True,
            wins=0,
            losses=0,
            tournament_wins=0,
            **stats,
        )

    @classmethod
    def generate_field(cls, count: int, used_ids: set, rng: Optional[random.Random] = None) -> list[Participant]:
        """Generate `count` CPU participants, skipping roster wrestlers already taken"""
        rng = rng or random.Random()
        used = set(used_ids)
        cpus = []
        for i in range(count):
            cpu = cls.create_cpu_participant(i, used, rng)
            if cpu.wrestler_id is not None:
                used.add(cpu.wrestler_id)
            cpus.append(cpu)
        return cpus
