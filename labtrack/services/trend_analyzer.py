from labtrack.schemas.biomarker import Trend

TREND_THRESHOLD_PERCENT = 5.0


def compute_delta(prev: float | None, curr: float | None) -> float | None:
    if prev is None or curr is None or prev == 0:
        return None
    return ((curr - prev) / abs(prev)) * 100.0


def direction(prev: float | None, curr: float | None, threshold: float = TREND_THRESHOLD_PERCENT) -> Trend:
    delta = compute_delta(prev, curr)
    if delta is None:
        return Trend.STABLE
    if delta > threshold:
        return Trend.UP
    if delta < -threshold:
        return Trend.DOWN
    return Trend.STABLE
