"""Treasury health monitoring — turns engine snapshots into logs and alerts."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..config import AppConfig
from ..errors import ValuationUnavailable
from ..interfaces.notifier import Notifier
from ..models import PositionSnapshot
from ..notifications import TelegramNotifier
from .engine import TreasuryEngine

logger = logging.getLogger(__name__)


class Monitor:
    """Reports every registered asset and alerts on high loan-to-value."""

    def __init__(self, engine: TreasuryEngine, config: AppConfig) -> None:
        self._engine = engine
        self._config = config
        self._thresholds = config.monitor.thresholds
        self._venue_name = config.venue.name

        self._notifiers: list[Notifier] = []
        if config.notifications.telegram.enabled:
            self._notifiers.append(TelegramNotifier(config.notifications.telegram))

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _ltv_pct(snapshot: PositionSnapshot) -> float:
        return float(snapshot.ltv) * 100

    def _get_status(self, ltv_pct: float) -> str:
        if ltv_pct >= self._thresholds.ltv_critical:
            return "🚨 CRITICAL"
        if ltv_pct >= self._thresholds.ltv_warning:
            return "⚠️ WARNING"
        return "✅ Healthy"

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    def _position_lines(self, snapshot: PositionSnapshot) -> str:
        return (
            f"  Idle: {snapshot.idle:,.2f}\n"
            f"  Supplied: {snapshot.supplied:,.2f}\n"
            f"  Borrowed: {snapshot.borrowed:,.2f}\n"
            f"  Managed value: {snapshot.total_value:,.2f}\n"
            f"  Unrealized P&L: {snapshot.unrealized_pl:+,.2f}\n"
            f"  LTV: {self._ltv_pct(snapshot):.2f}% "
            f"(liquidation at {float(snapshot.liquidation_threshold) * 100:.2f}%)"
        )

    def _build_log_message(self, snapshot: PositionSnapshot) -> str:
        status = self._get_status(self._ltv_pct(snapshot))
        return (
            f"📊 {snapshot.asset} · {self._venue_name} · {snapshot.leverage_state.value}\n"
            f"\n"
            f"{status}\n"
            f"\n"
            f"{self._position_lines(snapshot)}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

    def _build_alert(self, snapshot: PositionSnapshot, critical: bool) -> str:
        ltv_pct = self._ltv_pct(snapshot)
        if critical:
            header = f"🚨 CRITICAL — LTV {ltv_pct:.2f}%"
            advice = "⚠️ Unfold or pull collateral back immediately!"
        else:
            header = f"⚠️ WARNING — LTV {ltv_pct:.2f}%"
            advice = "Consider unfolding part of the position."
        return (
            f"{header}\n"
            f"\n"
            f"{snapshot.asset} · {self._venue_name}\n"
            f"\n"
            f"{self._position_lines(snapshot)}\n"
            f"\n"
            f"{advice}\n"
            f"{self._now_str()} UTC"
        )

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    async def _send_log(self, message: str, silent: bool = False) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=silent)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)

    async def _send_alert(self, message: str, subject: str = "") -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject=subject)
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    def snapshots(self) -> list[PositionSnapshot]:
        """Snapshots of every asset that can currently be valued."""
        result: list[PositionSnapshot] = []
        for asset in self._engine.assets():
            try:
                result.append(self._engine.snapshot(asset))
            except ValuationUnavailable as e:
                logger.error("Skipping %s: %s", asset, e)
        return result

    async def check_and_alert(self) -> None:
        """Log every position and alert on those above the LTV thresholds."""
        snapshots = self.snapshots()
        if not snapshots:
            await self._send_log(
                f"📊 {self._venue_name}\n\nNo valued positions.\n\n{self._now_str()} UTC"
            )
            return

        for snapshot in snapshots:
            ltv_pct = self._ltv_pct(snapshot)
            logger.info(
                "Position — %s · managed %.2f  borrowed %.2f  LTV %.2f%%  P&L %+.2f",
                snapshot.asset,
                snapshot.total_value,
                snapshot.borrowed,
                ltv_pct,
                snapshot.unrealized_pl,
            )
            await self._send_log(self._build_log_message(snapshot))

            if ltv_pct >= self._thresholds.ltv_critical:
                await self._send_alert(
                    self._build_alert(snapshot, critical=True),
                    subject="🚨 CRITICAL: Liquidation Risk!",
                )
            elif ltv_pct >= self._thresholds.ltv_warning:
                await self._send_alert(
                    self._build_alert(snapshot, critical=False),
                    subject="⚠️ WARNING: High LTV",
                )

    def render_report(self) -> str:
        sections = [
            f"{snapshot.asset} · {self._get_status(self._ltv_pct(snapshot))}\n"
            f"{self._position_lines(snapshot)}"
            for snapshot in self.snapshots()
        ]
        body = "\n\n".join(sections) if sections else "No valued positions."
        timer = self._engine.timer
        return (
            f"📋 Treasury Report · {self._venue_name}\n"
            f"\n"
            f"{body}\n"
            f"\n"
            f"Rewards: {timer.staked_balance():,.2f} staked, "
            f"cooldown {self._engine.cooldown_phase().value}\n"
            f"{self._now_str()} UTC"
        )

    async def generate_report(self) -> str:
        """Build the treasury report and send it to every notifier."""
        report = self.render_report()
        await self._send_alert(report)
        logger.info("Treasury report sent")
        return report
