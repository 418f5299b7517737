from typing import Any, Iterable, Optional


def clean(value: Any) -> Any:
    """Trim every string in a JSON-like structure, recursing into lists and dicts."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        return [clean(v) for v in value]
    if isinstance(value, dict):
        return {k: clean(v) for k, v in value.items()}
    return value


def format_usd(value: float) -> str:
    return f"${value:,.2f}"


def format_percent(value: float) -> str:
    return f"{value:.2f}%"


# ---------------------------------------------------------------------------
# "Did you mean" suggestions for tool names
# ---------------------------------------------------------------------------

def levenshtein(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        previous = current
    return previous[-1]


def suggest_tool(name: str, names: Iterable[str]) -> Optional[str]:
    """
    Closest known tool name. A case-insensitive exact match wins outright;
    otherwise the nearest name within max(3, 40% of len(name)) edits.
    """
    names = list(names)
    lower = name.lower()
    for candidate in names:
        if candidate.lower() == lower:
            return candidate

    threshold = max(3, int(len(name) * 0.4))
    best, best_distance = None, threshold + 1
    for candidate in names:
        distance = levenshtein(lower, candidate.lower())
        if distance < best_distance:
            best, best_distance = candidate, distance
    return best
