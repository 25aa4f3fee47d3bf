# readlog/numeric.py
import math
from numbers import Real
from typing import Optional


def round_half_away(value: float) -> int:
    """Redondeo "half away from zero": 2.5 → 3, -2.5 → -3 (round() de Python usa banker's)."""
    magnitude = math.floor(abs(value) + 0.5)
    return int(magnitude if value >= 0 else -magnitude)


def is_number(value) -> bool:
    # bool es subclase de int, pero un flag nunca es un conteo
    return isinstance(value, Real) and not isinstance(value, bool)


def clean_count(value) -> Optional[int]:
    """
    Normaliza un conteo (páginas, capítulos, segundos).
    None sigue siendo None: "desconocido" nunca se convierte en 0.
    No finitos y negativos se llevan a 0; decimales se redondean.
    Strings numéricos (payloads de red) se aceptan.
    """
    if value is None:
        return None
    if isinstance(value, str):
        cleaned = value.replace(",", "").strip()
        if not cleaned:
            return None
        try:
            value = float(cleaned)
        except ValueError:
            return None
    if not is_number(value):
        return None
    if not math.isfinite(value) or value <= 0:
        return 0
    return round_half_away(value)


def clamp_percent(value) -> int:
    """Lleva cualquier valor a un entero en [0, 100]. Basura → 0."""
    if not is_number(value) or not math.isfinite(value):
        return 0
    return max(0, min(100, round_half_away(value)))


def clamp_int(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def known_denominator(value: Optional[int]) -> Optional[int]:
    """Un denominador 0 se trata igual que uno desconocido."""
    if value is None or value <= 0:
        return None
    return value


def percent_from_ratio(current: Optional[int], total: Optional[int]) -> Optional[int]:
    """current/total en porcentaje, o None si no hay denominador utilizable."""
    denominator = known_denominator(total)
    if current is None or denominator is None:
        return None
    return clamp_percent(current * 100 / denominator)
