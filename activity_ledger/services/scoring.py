def effective_points(points: int | None, default_points: int | None) -> int:
    """Points an activity is worth: its own override, else the definition default.

    Ingestion and every aggregation query resolve points through this one
    function so write-time and read-time totals cannot drift apart.
    """
    if points is not None:
        return points
    return default_points or 0
