from app.engine.tables import BUILD_FIELDS, SIGNATURE_MOVES

MIN_STAT = 1
MAX_STAT = 10
BASE_STAT = 5
FREE_POINTS = 10  # Spent on top of BASE_STAT per stat in "free" mode
FIXED_TOTAL = 20


class BuildValidator:
    @staticmethod
    def validate(stats: dict, signature_move: str, mode: str = "free") -> dict:
        """
        Validate a wrestler build.

        Rules:
        1. height, weight, speed and technique all present, each 1-10
        2. free mode: at most 10 points spent above the base of 5 per stat
        3. fixed mode: the four stats sum to exactly 20
        4. Signature move is one of the known kimarite
        """
        errors = []

        for name in BUILD_FIELDS:
            value = stats.get(name)
            if value is None:
                errors.append(f"Missing stat: {name}")
            elif not MIN_STAT <= value <= MAX_STAT:
                errors.append(f"{name} must be between {MIN_STAT} and {MAX_STAT}, got {value}")

        total = sum(stats.get(name) or 0 for name in BUILD_FIELDS)
        if mode == "fixed":
            if total != FIXED_TOTAL:
                errors.append(f"Stats must total exactly {FIXED_TOTAL}, got {total}")
            points_remaining = FIXED_TOTAL - total
        elif mode == "free":
            budget = BASE_STAT * len(BUILD_FIELDS) + FREE_POINTS
            if total > budget:
                errors.append(f"Spent {total - BASE_STAT * len(BUILD_FIELDS)} points, only {FREE_POINTS} available")
            points_remaining = budget - total
        else:
            errors.append(f"Unknown build mode: {mode}")
            points_remaining = 0

        if signature_move not in SIGNATURE_MOVES:
            errors.append(f"Unknown signature move: {signature_move}")

        return {
            "valid": len(errors) == 0,
            "errors": errors,
            "total": total,
            "points_remaining": points_remaining,
        }
