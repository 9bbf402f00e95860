"""Per-provider error cooldown state.

A provider that failed recently is reported unavailable until the
cooldown window has passed. The state lives in an explicit object that
callers create and pass around, so two pipelines (or two tests) never
share it by accident.
"""

from ..models import ProviderId

DEFAULT_COOLDOWN_SECONDS = 30.0


class ProviderHealth:
    """Tracks the last failure time of each provider.

    Times are seconds on whatever clock the caller uses; the same clock
    must be used for recording and checking.
    """

    def __init__(self, cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS):
        self.cooldown_seconds = cooldown_seconds
        self._last_failure: dict[ProviderId, float] = {}

    def record_failure(self, provider: ProviderId, at: float) -> None:
        self._last_failure[ProviderId(provider)] = at

    def record_success(self, provider: ProviderId) -> None:
        self._last_failure.pop(ProviderId(provider), None)

    def is_available(self, provider: ProviderId, now: float) -> bool:
        """False while the provider is inside its cooldown window.

        A failure mark older than the window is cleared.
        """
        provider = ProviderId(provider)
        failed_at = self._last_failure.get(provider)
        if failed_at is None:
            return True
        if now - failed_at < self.cooldown_seconds:
            return False
        del self._last_failure[provider]
        return True

    def snapshot(self) -> dict[str, float | None]:
        """Last failure time per provider (None when healthy)."""
        return {p.value: self._last_failure.get(p) for p in ProviderId}
