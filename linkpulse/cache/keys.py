"""Cache key layout shared by resolution and analytics."""


def url_key(alias: str) -> str:
    """alias -> long URL"""
    return f"url:{alias}"


def analytics_key(scope_kind: str, scope_key: str) -> str:
    """Serialized rollup for one scope ("alias", "topic" or "owner")"""
    return f"analytics:{scope_kind}:{scope_key}"
